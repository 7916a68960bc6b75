"""
Validation Utilities

Contains utility functions for validating command fields and splitting
the text of "priv" and "name" commands.
"""

from typing import Any, Dict, Tuple

from ..errors import MalformedMessage


def require_text_field(data: Dict[str, Any], field_name: str) -> str:
    """
    Return a required string field of a command.

    Raises:
        MalformedMessage: If the field is missing or not a string
    """
    value = data.get(field_name)
    if not isinstance(value, str):
        raise MalformedMessage(
            f"'{data.get('type')}' message requires a string '{field_name}'"
        )
    return value


def parse_private_message(text: str) -> Tuple[str, str]:
    """
    Split "priv <target> <message...>" into its parts.

    Words are separated by single spaces, so the message keeps any extra
    spacing the sender typed.

    Returns:
        tuple: (target_name, message)

    Raises:
        MalformedMessage: If no target name is given
    """
    words = text.split(" ")
    if len(words) < 2 or not words[1]:
        raise MalformedMessage("Usage: priv <name> <message>")
    return words[1], " ".join(words[2:])


def parse_name_change(text: str) -> str:
    """
    Extract the new name from "name <newName>".

    Raises:
        MalformedMessage: If no new name is given
    """
    words = text.split(" ")
    if len(words) < 2 or not words[1]:
        raise MalformedMessage("Usage: name <newName>")
    return validate_username(words[1])


def validate_username(name: str) -> str:
    """
    Check a display name.

    Names must be non-empty and free of whitespace so that they can be
    addressed by "priv <name> ...".

    Raises:
        MalformedMessage: If the name is empty or contains whitespace
    """
    if not name:
        raise MalformedMessage("Name cannot be empty")
    if any(ch.isspace() for ch in name):
        raise MalformedMessage(f"Name cannot contain spaces: {name!r}")
    return name
