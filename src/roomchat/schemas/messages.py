"""
Outbound Message Schema Definitions

Contains functions for creating the payloads the server sends to clients.
"""

from typing import Any, Dict

SERVER_NAME = "Server"


def create_note(text: str) -> Dict[str, Any]:
    """
    Create a system announcement.

    Args:
        text: Announcement text

    Returns:
        dict: Note payload
    """
    return {"type": "note", "text": text}


def create_chat(name: str, text: str) -> Dict[str, Any]:
    """
    Create a chat payload.

    Args:
        name: Label shown as the author (user, "Server" or a PM label)
        text: Message text

    Returns:
        dict: Chat payload
    """
    return {"type": "chat", "name": name, "text": text}


def create_server_chat(text: str) -> Dict[str, Any]:
    """Create a chat payload authored by the server."""
    return create_chat(SERVER_NAME, text)


def create_join_note(username: str, room_name: str) -> Dict[str, Any]:
    return create_note(f'{username} joined "{room_name}".')


def create_leave_note(username: str, room_name: str) -> Dict[str, Any]:
    return create_note(f"{username} left {room_name}.")


def create_name_change_note(old_name: str, new_name: str) -> Dict[str, Any]:
    return create_note(f'{old_name} changed to "{new_name}".')


def create_members_listing(names) -> Dict[str, Any]:
    """
    Create the single-line member listing sent to one session.

    Args:
        names: Member names in listing order

    Returns:
        dict: Server chat payload, e.g. "In room: alice bob"
    """
    text = "In room:"
    for name in names:
        text += f" {name}"
    return create_server_chat(text)


def create_private_messages(sender: str, recipient: str, text: str):
    """
    Create the pair of payloads for a private message.

    Returns:
        tuple: (payload for the recipient, echo for the sender)
    """
    return (
        create_chat(f"PM from {sender}", text),
        create_chat(f"You send PM to {recipient}", text),
    )


def create_error_note(error_message: str) -> Dict[str, Any]:
    """Create a note telling a client its request failed."""
    return create_note(f"Error: {error_message}")
