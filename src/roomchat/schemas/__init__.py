"""
Schemas for the Chat Node

This module contains the inbound command decoding and the outbound
payload builders used by sessions.
"""

from .commands import COMMAND_FIELDS, decode_command
from .messages import (
    SERVER_NAME,
    create_note,
    create_chat,
    create_server_chat,
    create_join_note,
    create_leave_note,
    create_name_change_note,
    create_members_listing,
    create_private_messages,
    create_error_note,
)

__all__ = [
    "COMMAND_FIELDS",
    "decode_command",
    "SERVER_NAME",
    "create_note",
    "create_chat",
    "create_server_chat",
    "create_join_note",
    "create_leave_note",
    "create_name_change_note",
    "create_members_listing",
    "create_private_messages",
    "create_error_note",
]
