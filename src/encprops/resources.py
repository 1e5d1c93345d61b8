"""Scoped resource helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=IO)


@contextmanager
def closing_quietly(resource: T) -> Iterator[T]:
    """
    Close ``resource`` on exit, ignoring errors raised by close().

    Whatever happened inside the block (normal exit or an exception) is the
    outcome the caller sees; a failing close() is logged at debug level
    and otherwise dropped.
    """
    try:
        yield resource
    finally:
        try:
            resource.close()
        except Exception as e:
            logger.debug("Ignoring error while closing %r: %s", resource, e)
