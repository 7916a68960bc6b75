"""
WebSocket Server for the Chat Node

Accepts client connections, binds each one to a ChatSession in the room
named by the request path and feeds it the client's frames.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import unquote, urlsplit

import websockets
from websockets.asyncio.server import ServerConnection, serve

from .errors import ChatError
from .quips import QuipProvider
from .room_state import RoomRegistry
from .schemas import create_error_note
from .session import ChatSession

logger = logging.getLogger(__name__)

DEFAULT_ROOM = "lobby"


def room_name_from_path(path: str, default_room: str = DEFAULT_ROOM) -> str:
    """
    Extract the room name from a request path.

    Both "/chat/<room>" and "/<room>" are accepted; a path naming no room
    maps to the default room.

    Args:
        path: Request path, possibly with a query string
        default_room: Room used when the path names none

    Returns:
        str: The room name
    """
    segments = [s for s in urlsplit(path or "").path.split("/") if s]
    if segments and segments[0] == "chat":
        segments = segments[1:]
    if not segments:
        return default_room
    return unquote(segments[-1])


class ChatServer:
    """
    WebSocket server for handling chat client connections.

    The server owns connection lifecycle: it guarantees that the session's
    close handler runs once for every connection it accepted.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        host: str,
        port: int,
        quip_provider: Optional[QuipProvider] = None,
        default_room: str = DEFAULT_ROOM,
    ):
        """
        Initialize the chat server.

        Args:
            registry: The room registry shared by all sessions
            host: Host address to bind to
            port: Port to listen on
            quip_provider: Provider used by the "joke" command
            default_room: Room for connections whose path names none
        """
        self.registry = registry
        self.host = host
        self.port = port
        self.quip_provider = quip_provider
        self.default_room = default_room
        self.server = None

    async def start(self):
        """Start the WebSocket server."""
        self.server = await serve(self.handle_client, self.host, self.port)
        logger.info(f"WebSocket server started on ws://{self.host}:{self.port}")

    async def stop(self):
        """Stop the WebSocket server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            logger.info("WebSocket server stopped")

    def create_session(self, websocket, path: str) -> ChatSession:
        """Create the session for a new connection."""
        room = self.registry.get(room_name_from_path(path, self.default_room))
        return ChatSession(websocket.send, room, self.quip_provider)

    async def handle_client(self, websocket: ServerConnection):
        """
        Handle a client connection.

        Args:
            websocket: The WebSocket connection
        """
        client_id = id(websocket)
        session = self.create_session(websocket, websocket.request.path)
        logger.info(f"Client {client_id} connected to room '{session.room.name}'")

        frames: asyncio.Queue = asyncio.Queue()
        worker = asyncio.create_task(self.process_frames(session, frames))

        try:
            async for message in websocket:
                frames.put_nowait(message)
        except websockets.exceptions.ConnectionClosed:
            logger.info(f"Client {client_id} disconnected")
        except Exception as e:
            logger.error(f"Error handling client {client_id}: {e}")
        finally:
            # Work still pending for a gone connection is abandoned
            worker.cancel()
            try:
                await worker
            except asyncio.CancelledError:
                pass
            await session.handle_close()
            logger.info(f"Client {client_id} closed")

    async def process_frames(self, session: ChatSession, frames: asyncio.Queue):
        """
        Process a client's frames one at a time, in arrival order.

        Runs until cancelled by the connection handler.

        Args:
            session: The client's session
            frames: Queue the receive loop fills with raw frames
        """
        while True:
            message = await frames.get()
            await self.process_message(session, message)

    async def process_message(self, session: ChatSession, message):
        """
        Process an incoming frame from a client.

        Rejected frames are answered with an error note; the connection
        stays open.

        Args:
            session: The client's session
            message: The raw frame
        """
        try:
            await session.handle_message(message)
        except ChatError as e:
            logger.warning(f"Rejected message from {session.name}: {e}")
            await session.send(create_error_note(str(e)))
        except Exception as e:
            logger.error(f"Error processing message from {session.name}: {e}")
            await session.send(create_error_note("Internal server error"))
