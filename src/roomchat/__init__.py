"""
Room Chat Node Package

This package provides the server side of a multi-room text chat service:
the room registry, per-connection chat sessions and the WebSocket server.
"""

from .errors import (
    ChatError,
    MalformedMessage,
    UnrecognizedMessageType,
    SessionStateError,
    RecipientNotFound,
    DeliveryFailure,
    QuipProviderError,
)
from .room_state import Room, RoomRegistry
from .session import ChatSession, SessionState
from .quips import QuipProvider, HttpQuipProvider
from .websocket_server import ChatServer, room_name_from_path

__all__ = [
    "ChatError",
    "MalformedMessage",
    "UnrecognizedMessageType",
    "SessionStateError",
    "RecipientNotFound",
    "DeliveryFailure",
    "QuipProviderError",
    "Room",
    "RoomRegistry",
    "ChatSession",
    "SessionState",
    "QuipProvider",
    "HttpQuipProvider",
    "ChatServer",
    "room_name_from_path",
]
