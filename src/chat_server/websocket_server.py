"""
WebSocket Server

Handles WebSocket connections from clients, feeds their frames to the
coordination engine, and delivers the resulting broadcasts.

Each connection gets an outbound queue drained by its own writer task.
Handling an event (engine dispatch plus enqueueing every resulting frame)
never awaits, so one event is processed completely before the next one
starts, while a slow client only holds up its own deliveries.
"""

import asyncio
import json
import logging
import uuid
from typing import Dict, Iterable, Optional

import websockets

from .engine import CoordinationEngine
from .schemas import Broadcast, Disconnect, MalformedFrame, parse_event

logger = logging.getLogger(__name__)

_CLOSE = object()


class ClientConnection:
    """
    A connected client and its outbound frame queue.

    Attributes:
        connection_id: Id assigned when the socket was accepted
        websocket: The underlying WebSocket connection
    """

    def __init__(self, connection_id: str, websocket):
        self.connection_id = connection_id
        self.websocket = websocket
        self.queue: asyncio.Queue = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None

    def start(self):
        self._writer = asyncio.create_task(self._write_loop())

    def enqueue(self, frame: str):
        self.queue.put_nowait(frame)

    async def close(self):
        """Stop the writer once every queued frame has been handled."""
        self.queue.put_nowait(_CLOSE)
        if self._writer is not None:
            await self._writer

    async def _write_loop(self):
        closed = False
        while True:
            frame = await self.queue.get()
            try:
                if frame is _CLOSE:
                    return
                if closed:
                    continue
                await self.websocket.send(frame)
            except websockets.exceptions.ConnectionClosed:
                logger.debug(
                    f"Connection {self.connection_id} closed, "
                    f"dropping queued frames"
                )
                closed = True
            except Exception:
                logger.exception(
                    f"Error sending to connection {self.connection_id}"
                )
                closed = True
            finally:
                self.queue.task_done()


class WebSocketServer:
    """
    WebSocket server for chat clients.

    The server is the transport for the coordination engine: it assigns
    connection ids, parses inbound frames into events, and sends each
    broadcast to its recipients.
    """

    def __init__(self, engine: CoordinationEngine, host: str, port: int):
        """
        Initialize the WebSocket server.

        Args:
            engine: The coordination engine handling events
            host: Host address to bind to
            port: Port to listen on
        """
        self.engine = engine
        self.host = host
        self.port = port
        self.server = None
        self.connections: Dict[str, ClientConnection] = {}

    async def start(self):
        """Start the WebSocket server."""
        self.server = await websockets.serve(
            self.handle_client, self.host, self.port
        )
        logger.info(f"WebSocket server started on ws://{self.host}:{self.port}")

    async def stop(self):
        """Stop the WebSocket server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            logger.info("WebSocket server stopped")

    def register_connection(self, websocket) -> ClientConnection:
        """
        Track a newly accepted socket and start its writer.

        Args:
            websocket: The WebSocket connection

        Returns:
            The ClientConnection wrapping it
        """
        connection = ClientConnection(uuid.uuid4().hex, websocket)
        self.connections[connection.connection_id] = connection
        connection.start()
        logger.info(f"Client {connection.connection_id} connected")
        return connection

    async def unregister_connection(self, connection_id: str):
        """
        Handle a closed socket: run the disconnect event, then stop the
        connection's writer.
        """
        try:
            self.dispatch(connection_id, Disconnect())
        finally:
            connection = self.connections.pop(connection_id, None)
            if connection is not None:
                await connection.close()
        logger.info(f"Client {connection_id} disconnected")

    async def handle_client(self, websocket):
        """
        Handle a client connection until it closes.

        Args:
            websocket: The WebSocket connection
        """
        connection = self.register_connection(websocket)
        connection_id = connection.connection_id

        try:
            async for frame in websocket:
                self.process_message(connection_id, frame)
        except websockets.exceptions.ConnectionClosed:
            logger.debug(f"Client {connection_id} connection closed")
        except Exception:
            logger.exception(f"Error handling client {connection_id}")
        finally:
            await self.unregister_connection(connection_id)

    def process_message(self, connection_id: str, frame):
        """
        Process an incoming frame from a client.

        Malformed frames are logged and dropped without a reply.

        Args:
            connection_id: The connection the frame arrived on
            frame: The frame (JSON text)
        """
        try:
            event = parse_event(frame)
        except MalformedFrame as e:
            logger.warning(f"Dropping frame from {connection_id}: {e}")
            return

        self.dispatch(connection_id, event)

    def dispatch(self, connection_id: str, event):
        broadcasts = self.engine.dispatch(connection_id, event)
        self.deliver(broadcasts)

    def deliver(self, broadcasts: Iterable[Broadcast]):
        """
        Queue each broadcast for its recipients.

        Recipients without a live connection are skipped.
        """
        for broadcast in broadcasts:
            frame = json.dumps(broadcast.to_frame())
            if broadcast.room is not None:
                logger.debug(
                    f"Delivering {broadcast.event} in '{broadcast.room}' "
                    f"to {len(broadcast.recipients)} member(s)"
                )
            for recipient in broadcast.recipients:
                connection = self.connections.get(recipient)
                if connection is not None:
                    connection.enqueue(frame)

    async def flush(self):
        """Wait until every queued frame has been sent or dropped."""
        await asyncio.gather(
            *(connection.queue.join() for connection in self.connections.values())
        )
