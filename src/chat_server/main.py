#!/usr/bin/env python3
"""
Chat Server

Real-time group chat server: clients connect over WebSocket, pick a display
name, join rooms, and exchange messages with the other members.

Configuration comes from the environment, with command-line flags taking
precedence:
    CHAT_HOST               --host                  (default 0.0.0.0)
    CHAT_PORT               --port                  (default 5001)
    LOG_LEVEL               --log-level             (default INFO)
    CHAT_CHECK_INVARIANTS   --check-invariants      (default off)
    CHAT_MAX_MESSAGE_LENGTH --max-message-length    (default unlimited)
"""

import argparse
import asyncio
import logging
import os
import sys

from .engine import CoordinationEngine
from .utils.validation import ValidationLimits
from .websocket_server import WebSocketServer

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 5001


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str):
    value = os.environ.get(name, "").strip()
    return int(value) if value else None


def parse_args(argv=None) -> argparse.Namespace:
    """
    Parse command-line arguments, defaulting to environment settings.

    Args:
        argv: Argument list (sys.argv[1:] when None)

    Returns:
        argparse.Namespace with host, port, log_level, check_invariants
        and max_message_length
    """
    parser = argparse.ArgumentParser(description="Room chat server")
    parser.add_argument(
        "--host",
        default=os.environ.get("CHAT_HOST", DEFAULT_HOST),
        help="Address to listen on",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("CHAT_PORT", str(DEFAULT_PORT))),
        help="Port to listen on",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        help="Logging level (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--check-invariants",
        action="store_true",
        default=_env_flag("CHAT_CHECK_INVARIANTS"),
        help="Verify session/room consistency after every event",
    )
    parser.add_argument(
        "--max-message-length",
        type=int,
        default=_env_int("CHAT_MAX_MESSAGE_LENGTH"),
        help="Reject messages longer than this many characters",
    )
    return parser.parse_args(argv)


def build_engine(args: argparse.Namespace) -> CoordinationEngine:
    """Create the coordination engine from parsed settings."""
    limits = ValidationLimits(max_message_length=args.max_message_length)
    return CoordinationEngine(
        limits=limits, check_invariants=args.check_invariants
    )


async def run_server(host: str, port: int, engine: CoordinationEngine):
    """
    Run the chat server until cancelled.

    Args:
        host: Host address to bind to
        port: Port to listen on
        engine: The coordination engine handling client events
    """
    ws_server = WebSocketServer(engine, host, port)
    await ws_server.start()

    logger.info(f"Chat server listening on ws://{host}:{port}")

    try:
        # Wait indefinitely
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await ws_server.stop()
        logger.info("Chat server stopped")


def main(argv=None):
    """Main entry point for the chat server."""
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger.info("Starting chat server...")

    try:
        asyncio.run(run_server(args.host, args.port, build_engine(args)))
    except KeyboardInterrupt:
        logger.info("Shutting down chat server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
