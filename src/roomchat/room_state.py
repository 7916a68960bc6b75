"""
Room State Management for the Chat Node

This module manages the in-memory rooms hosted by this process.
Rooms are created on first reference to their name and live for the
lifetime of the process.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List

from .errors import RecipientNotFound

if TYPE_CHECKING:
    from .session import ChatSession

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Room:
    """
    Represents a chat room hosted on this node.

    Attributes:
        name: Name of the room, unique within a registry
        members: Sessions currently joined, keyed in join order
    """

    name: str
    members: Dict["ChatSession", None] = field(default_factory=dict)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False
    )

    def join(self, session: "ChatSession"):
        """
        Add a session to the room.

        Joining twice keeps a single entry at its first join position.

        Args:
            session: The session joining
        """
        with self._lock:
            self.members.setdefault(session, None)
            count = len(self.members)
        logger.info(f"{session.name} joined room '{self.name}' ({count} members)")

    def leave(self, session: "ChatSession"):
        """
        Remove a session from the room. Unknown sessions are ignored.

        Args:
            session: The session leaving
        """
        with self._lock:
            removed = session in self.members
            if removed:
                del self.members[session]
            count = len(self.members)
        if removed:
            logger.info(
                f"{session.name} left room '{self.name}' ({count} members)"
            )

    def snapshot(self) -> List["ChatSession"]:
        """Return the current members in join order."""
        with self._lock:
            return list(self.members)

    def member_names(self) -> List[str]:
        """Return the names of the current members in join order."""
        return [member.name for member in self.snapshot()]

    def find_member(self, name: str) -> "ChatSession":
        """
        Look up a current member by display name.

        When several members share the name, the most recently joined wins.

        Args:
            name: The display name to look for

        Returns:
            The matching session

        Raises:
            RecipientNotFound: If no current member has that name
        """
        found = None
        for member in self.snapshot():
            if member.name == name:
                found = member
        if found is None:
            raise RecipientNotFound(name)
        return found

    async def broadcast(self, message: dict) -> int:
        """
        Deliver a message to every member present at call time.

        Members that join or leave while the broadcast is in progress do
        not change who receives it. A failed delivery is skipped.

        Args:
            message: The payload to deliver

        Returns:
            int: Number of members the message was delivered to
        """
        recipients = self.snapshot()
        delivered = 0
        for member in recipients:
            if await member.send(message):
                delivered += 1
        logger.debug(
            f"Broadcast {message.get('type')} in '{self.name}' to "
            f"{delivered}/{len(recipients)} members"
        )
        return delivered

    def __contains__(self, session) -> bool:
        with self._lock:
            return session in self.members

    def __len__(self) -> int:
        with self._lock:
            return len(self.members)


class RoomRegistry:
    """
    Name to Room lookup with get-or-create semantics.

    One registry is constructed per process and handed to whatever creates
    sessions. Rooms are never removed.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Room:
        """
        Get the room with the given name, creating it if needed.

        Args:
            name: Room name

        Returns:
            Room: The single Room instance for that name
        """
        with self._lock:
            room = self._rooms.get(name)
            if room is None:
                room = Room(name)
                self._rooms[name] = room
                created = True
            else:
                created = False
        if created:
            logger.info(f"Created room '{name}'")
        return room

    def names(self) -> List[str]:
        """Return the names of all rooms in creation order."""
        with self._lock:
            return list(self._rooms)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
