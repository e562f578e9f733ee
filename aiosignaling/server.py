import contextlib
import logging
import os
from typing import AsyncGenerator, Mapping, Optional
from urllib.parse import parse_qs, urlparse

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from .registry import OUTBOX_SIZE, ConnectionRegistry
from .rooms import RoomTable
from .router import Router
from .utils import get_host_addresses

logger = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
SHUTDOWN_TIMEOUT = 5.0

CREDENTIAL_PARAMETERS = ["token", "apiKey"]


def default_port(environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Return the port from the `PORT` environment variable, or 8080.
    """
    if environ is None:
        environ = os.environ
    value = environ.get("PORT")
    if not value:
        return DEFAULT_PORT
    return int(value)


def get_credential(path: str) -> Optional[str]:
    """
    Extract the opaque credential from a request path, if any.
    """
    query = parse_qs(urlparse(path).query)
    for name in CREDENTIAL_PARAMETERS:
        if name in query:
            return query[name][0]
    return None


class SignalingServer:
    """
    WebSocket signaling relay.

    Peers join named rooms and exchange offers, answers and ICE candidates
    with the other members of their room.
    """

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        queue_size: int = OUTBOX_SIZE,
    ) -> None:
        self.host = host
        self.port = port
        self.registry = ConnectionRegistry(queue_size=queue_size)
        self.rooms = RoomTable()
        self.router = Router(self.registry, self.rooms)

        self._closing = False
        self._server: Optional[Server] = None

    async def listen(self) -> None:
        self._closing = False
        self._server = await serve(self._handle, self.host, self.port)
        self.address = self._server.sockets[0].getsockname()[0:2]
        logger.info("Listening on ws://%s:%d", *self.address)

        if self.host == DEFAULT_HOST:
            for address in get_host_addresses(use_ipv4=True, use_ipv6=False):
                logger.info("Connect to: ws://%s:%d", address, self.address[1])

    async def close(self, timeout: float = SHUTDOWN_TIMEOUT) -> None:
        """
        Stop accepting connections, deliver pending frames, then close.
        """
        if self._server is None:
            return
        self._closing = True

        await self.registry.flush(timeout=timeout)

        # closing the server closes the live connections, which runs their
        # disconnect cleanup
        self._server.close()
        await self._server.wait_closed()
        await self.registry.close(timeout=timeout)
        self._server = None
        logger.info("Server stopped")

    async def _handle(self, websocket: ServerConnection) -> None:
        if self._closing:
            await websocket.close(1001, "Server is shutting down")
            return

        connection_id = self.registry.register(websocket)
        credential = get_credential(websocket.request.path)
        logger.info(
            "Connection %s opened from %s (credential %s)",
            connection_id,
            websocket.remote_address,
            "present" if credential is not None else "absent",
        )

        try:
            async for message in websocket:
                self.router.handle_message(connection_id, message)
        except ConnectionClosed as exc:
            logger.info("Connection %s lost (%s)", connection_id, exc)
        finally:
            self.router.handle_disconnect(connection_id)
            logger.info("Connection %s closed", connection_id)


@contextlib.asynccontextmanager
async def run_signaling_server(
    host: str = "127.0.0.1", port: int = 0, queue_size: int = OUTBOX_SIZE
) -> AsyncGenerator[SignalingServer, None]:
    server = SignalingServer(host=host, port=port, queue_size=queue_size)
    await server.listen()
    try:
        yield server
    finally:
        await server.close()
