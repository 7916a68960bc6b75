"""
Utilities for the Chat Node

This module contains helpers for validating and parsing command fields.
"""

from .validation import (
    require_text_field,
    parse_private_message,
    parse_name_change,
    validate_username,
)

__all__ = [
    "require_text_field",
    "parse_private_message",
    "parse_name_change",
    "validate_username",
]
