"""
Line-oriented terminal input and output.

The editor and the status messages of the loader and persister all talk to
the operator through one Console, passed in explicitly. Tests drive it with
in-memory streams.
"""

from __future__ import annotations

import sys
from typing import TextIO


class Console:
    """
    A line reader paired with a line writer.

    Attributes:
        reader: Text stream prompts read from.
        writer: Text stream prompts and messages are written to.
    """

    def __init__(self, reader: TextIO, writer: TextIO) -> None:
        self.reader = reader
        self.writer = writer

    @classmethod
    def terminal(cls) -> Console:
        """Console bound to the process's standard input and output."""
        return cls(sys.stdin, sys.stdout)

    def prompt(self, text: str) -> str | None:
        """
        Show ``text`` without a newline and read one line of input.

        Returns:
            The line without its terminator, or None at end of input.
        """
        self.writer.write(text)
        self.writer.flush()

        line = self.reader.readline()
        if not line:
            return None
        if line.endswith("\r\n"):
            return line[:-2]
        if line.endswith("\n") or line.endswith("\r"):
            return line[:-1]
        return line

    def print(self, text: str = "") -> None:
        self.writer.write(f"{text}\n")
        self.writer.flush()
