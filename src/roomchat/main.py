#!/usr/bin/env python3
"""
Room Chat Node Server

Runs the multi-room WebSocket chat server.

Configuration is read from the environment and may be overridden on the
command line:
    WEBSOCKET_HOST, WEBSOCKET_PORT, DEFAULT_ROOM, QUIP_URL, QUIP_TIMEOUT,
    LOG_LEVEL
"""

import argparse
import asyncio
import logging
import os
import sys

from .quips import DEFAULT_QUIP_TIMEOUT, DEFAULT_QUIP_URL, HttpQuipProvider
from .room_state import RoomRegistry
from .websocket_server import DEFAULT_ROOM, ChatServer

logger = logging.getLogger(__name__)


def parse_args(argv=None, environ=None) -> argparse.Namespace:
    """
    Parse command line arguments, using environment variables as defaults.

    Args:
        argv: Argument list (defaults to sys.argv[1:])
        environ: Environment mapping (defaults to os.environ)

    Returns:
        argparse.Namespace: Resolved configuration
    """
    env = os.environ if environ is None else environ

    parser = argparse.ArgumentParser(description="Multi-room chat node server")
    parser.add_argument(
        "--host",
        default=env.get("WEBSOCKET_HOST", "0.0.0.0"),
        help="WebSocket host address to bind to",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(env.get("WEBSOCKET_PORT", "8080")),
        help="WebSocket port to listen on",
    )
    parser.add_argument(
        "--default-room",
        default=env.get("DEFAULT_ROOM", DEFAULT_ROOM),
        help="Room used when the connection path names none",
    )
    parser.add_argument(
        "--quip-url",
        default=env.get("QUIP_URL", DEFAULT_QUIP_URL),
        help="Endpoint returning {\"joke\": ...} as JSON",
    )
    parser.add_argument(
        "--quip-timeout",
        type=float,
        default=float(env.get("QUIP_TIMEOUT", DEFAULT_QUIP_TIMEOUT)),
        help="Timeout in seconds for quip requests",
    )
    parser.add_argument(
        "--log-level",
        default=env.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        type=str.upper,
        help="Logging level",
    )
    return parser.parse_args(argv)


async def run_server(
    host: str,
    port: int,
    default_room: str,
    quip_url: str,
    quip_timeout: float,
):
    """
    Run the chat server until cancelled.

    Args:
        host: WebSocket host address to bind to
        port: WebSocket port to listen on
        default_room: Room used when the connection path names none
        quip_url: Joke endpoint for the quip provider
        quip_timeout: Timeout for quip requests in seconds
    """
    registry = RoomRegistry()
    quip_provider = HttpQuipProvider(quip_url, timeout=quip_timeout)
    server = ChatServer(
        registry, host, port, quip_provider, default_room=default_room
    )

    await server.start()
    logger.info(f"Chat node is ready (default room '{default_room}')")

    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await server.stop()
        await quip_provider.close()
        logger.info(f"Chat node stopped ({len(registry)} rooms served)")


def main(argv=None):
    """Main entry point for the chat node server."""
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting chat node server...")

    try:
        asyncio.run(
            run_server(
                args.host,
                args.port,
                args.default_room,
                args.quip_url,
                args.quip_timeout,
            )
        )
    except KeyboardInterrupt:
        logger.info("Shutting down chat node server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
