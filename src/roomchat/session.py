"""
Chat Session

A ChatSession is one client connection's server-side state. It decodes
inbound frames, checks them against the session state and dispatches to
per-type handlers that update room membership or deliver messages.
"""

import json
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from .errors import (
    DeliveryFailure,
    QuipProviderError,
    RecipientNotFound,
    SessionStateError,
)
from .quips import QuipProvider
from .room_state import Room
from .schemas import (
    decode_command,
    create_chat,
    create_server_chat,
    create_note,
    create_join_note,
    create_leave_note,
    create_name_change_note,
    create_members_listing,
    create_private_messages,
)
from .utils import parse_private_message, parse_name_change, validate_username

logger = logging.getLogger(__name__)

QUIP_FAILURE_TEXT = "Sorry, I could not think of a joke right now."

SendCallable = Callable[[str], Awaitable[Any]]


class SessionState(Enum):
    """Session lifecycle states."""

    UNJOINED = "UNJOINED"
    JOINED = "JOINED"
    CLOSED = "CLOSED"


class ChatSession:
    """
    One connected participant in a room.

    The transport supplies the send capability and the room; the session
    only holds them. Every command except "join" requires a joined session.
    """

    def __init__(
        self,
        send: SendCallable,
        room: Room,
        quip_provider: Optional[QuipProvider] = None,
    ):
        """
        Initialize the session.

        Args:
            send: Coroutine function delivering one raw frame to the client
            room: The room this session belongs to
            quip_provider: Source of jokes for the "joke" command
        """
        self._send = send
        self.room = room
        self.quip_provider = quip_provider
        self.name: Optional[str] = None
        self.state = SessionState.UNJOINED

        self._handlers = {
            "join": self.handle_join,
            "chat": self.handle_chat,
            "joke": self.handle_joke,
            "members": self.handle_members,
            "priv": self.handle_private_message,
            "name": self.handle_name_change,
        }

        logger.info(f"Created session in room '{self.room.name}'")

    async def send(self, message: Dict[str, Any]) -> bool:
        """
        Deliver one payload to this client, best effort.

        Delivery errors are logged and discarded so that they never reach
        a broadcast loop or the handler that triggered the send.

        Args:
            message: Payload to serialize and send

        Returns:
            bool: True if the transport accepted the frame
        """
        try:
            await self._deliver(json.dumps(message))
        except DeliveryFailure as e:
            logger.debug(f"Dropped message to {self.name}: {e}")
            return False
        return True

    async def _deliver(self, frame: str):
        try:
            await self._send(frame)
        except Exception as e:
            raise DeliveryFailure(str(e) or type(e).__name__) from e

    async def handle_message(self, raw: Union[str, bytes]):
        """
        Handle one inbound frame.

        Args:
            raw: The frame received from the client

        Raises:
            MalformedMessage: If the frame cannot be decoded
            UnrecognizedMessageType: If the command type is unknown
            SessionStateError: If the command is not allowed right now
        """
        command = decode_command(raw)
        message_type = command["type"]
        self._check_state(message_type)
        await self._handlers[message_type](command)

    def _check_state(self, message_type: str):
        if self.state is SessionState.CLOSED:
            raise SessionStateError("Session is closed")
        if message_type == "join":
            if self.state is SessionState.JOINED:
                raise SessionStateError(f"Already joined as {self.name}")
        elif self.state is SessionState.UNJOINED:
            raise SessionStateError(f"Must join before sending '{message_type}'")

    async def handle_join(self, command: Dict[str, Any]):
        """Set the name, join the room and announce it."""
        self.name = validate_username(command["name"])
        self.room.join(self)
        self.state = SessionState.JOINED
        await self.room.broadcast(create_join_note(self.name, self.room.name))

    async def handle_chat(self, command: Dict[str, Any]):
        await self.room.broadcast(create_chat(self.name, command["text"]))

    async def handle_joke(self, command: Dict[str, Any]):
        """Fetch a quip and send it to this client only."""
        if self.quip_provider is None:
            await self.send(create_server_chat(QUIP_FAILURE_TEXT))
            return
        try:
            quip = await self.quip_provider.get_quip()
        except QuipProviderError as e:
            logger.warning(f"Quip for {self.name} failed: {e}")
            await self.send(create_server_chat(QUIP_FAILURE_TEXT))
            return
        await self.send(create_server_chat(quip))

    async def handle_members(self, command: Dict[str, Any]):
        await self.send(create_members_listing(self.room.member_names()))

    async def handle_private_message(self, command: Dict[str, Any]):
        """
        Send a private message to one member and echo it to the sender.

        An unknown recipient is answered with a note to the sender.
        """
        target_name, text = parse_private_message(command["text"])
        try:
            recipient = self.room.find_member(target_name)
        except RecipientNotFound as e:
            logger.info(f"PM from {self.name} to unknown member {e.name}")
            await self.send(
                create_note(f'No member named "{e.name}" in {self.room.name}.')
            )
            return

        to_recipient, echo = create_private_messages(
            self.name, recipient.name, text
        )
        await recipient.send(to_recipient)
        await self.send(echo)

    async def handle_name_change(self, command: Dict[str, Any]):
        new_name = parse_name_change(command["text"])
        old_name = self.name
        self.name = new_name
        logger.info(f"{old_name} renamed to {new_name} in '{self.room.name}'")
        await self.room.broadcast(create_name_change_note(old_name, new_name))

    async def handle_close(self):
        """
        Connection was closed: leave the room and announce the departure.

        Only the first call has an effect. Sessions that never joined leave
        silently.
        """
        if self.state is SessionState.CLOSED:
            return
        was_joined = self.state is SessionState.JOINED
        self.state = SessionState.CLOSED
        self.room.leave(self)
        if was_joined:
            await self.room.broadcast(create_leave_note(self.name, self.room.name))
