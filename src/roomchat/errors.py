"""
Chat Errors

Exception hierarchy raised by the room and session layer.

Only MalformedMessage, UnrecognizedMessageType and SessionStateError reach
the transport. The others are handled inside the session.
"""


class ChatError(Exception):
    """Base class for all chat node errors."""


class MalformedMessage(ChatError):
    """Inbound payload could not be decoded into a command."""


class UnrecognizedMessageType(ChatError):
    """Payload decoded but its type is unknown."""

    def __init__(self, message_type):
        self.message_type = message_type
        super().__init__(f"bad message: {message_type}")


class SessionStateError(ChatError):
    """Command is not allowed in the session's current state."""


class RecipientNotFound(ChatError):
    """No current room member carries the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No member named {name!r}")


class DeliveryFailure(ChatError):
    """Sending one frame to one recipient failed."""


class QuipProviderError(ChatError):
    """The quip provider could not supply a quip."""
