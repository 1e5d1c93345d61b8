"""
Interactive store editor.

Reads keys and values from the console and writes them into the store until
the operator submits an empty key or input ends.

States:
    AWAIT_KEY      prompt for a key; empty key or end of input -> LOOP_DONE
    AWAIT_CONFIRM  key already present; anything but "y"/"yes" -> AWAIT_KEY
    AWAIT_VALUE    prompt for a value; non-empty value is stored -> AWAIT_KEY

An empty value never writes anything: it neither creates a key nor blanks
an existing one.
"""

from __future__ import annotations

import logging
from enum import Enum

from encprops.console import Console
from encprops.store.encrypted import EncryptedProperties

logger = logging.getLogger(__name__)

KEY_PROMPT = "Enter key: "
CONFIRM_PROMPT = "Key already exists. Replace? "
VALUE_PROMPT = "Enter value: "

# Matched exactly; "Y" or "YES" decline
AFFIRMATIVE_ANSWERS = frozenset({"y", "yes"})


class EditorState(Enum):
    """States of the edit loop."""

    AWAIT_KEY = "await_key"
    AWAIT_CONFIRM = "await_confirm"
    AWAIT_VALUE = "await_value"
    LOOP_DONE = "loop_done"


def edit_store(store: EncryptedProperties, console: Console) -> int:
    """
    Run the edit loop against ``store``, mutating it in place.

    Args:
        store: Store to edit.
        console: Source of keys, confirmations and values.

    Returns:
        Number of values written.
    """
    state = EditorState.AWAIT_KEY
    key = ""
    written = 0

    while state is not EditorState.LOOP_DONE:
        if state is EditorState.AWAIT_KEY:
            key = console.prompt(KEY_PROMPT) or ""
            if not key:
                state = EditorState.LOOP_DONE
            elif store.contains_key(key):
                state = EditorState.AWAIT_CONFIRM
            else:
                state = EditorState.AWAIT_VALUE

        elif state is EditorState.AWAIT_CONFIRM:
            confirm = console.prompt(CONFIRM_PROMPT)
            if confirm in AFFIRMATIVE_ANSWERS:
                state = EditorState.AWAIT_VALUE
            else:
                logger.debug("Kept existing value for %s", key)
                state = EditorState.AWAIT_KEY

        elif state is EditorState.AWAIT_VALUE:
            value = console.prompt(VALUE_PROMPT)
            if value:
                store.set_property(key, value)
                written += 1
                logger.debug("Set %s", key)
            else:
                logger.debug("Skipped %s: empty value", key)
            state = EditorState.AWAIT_KEY

    return written
