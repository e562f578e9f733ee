import asyncio
import logging
from typing import Any, Optional

from websockets.exceptions import ConnectionClosed

from .envelope import Envelope, encode_envelope
from .rooms import ConnectionId
from .utils import next_connection_id

logger = logging.getLogger(__name__)

OUTBOX_SIZE = 256


class Outbox:
    """
    Frames waiting to be written to one connection.

    The queue is drained by a dedicated writer task so that a slow peer only
    ever delays itself. A `None` item tells the writer to stop.
    """

    def __init__(
        self, connection_id: ConnectionId, transport: Any, maxsize: int
    ) -> None:
        self.connection_id = connection_id
        self.maxsize = maxsize
        self.queue: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self.transport = transport
        self.writable = True

    def put(self, data: str) -> bool:
        if not self.writable:
            return False
        if self.queue.qsize() >= self.maxsize:
            logger.warning(
                "Connection %s outbox is full, dropping frame", self.connection_id
            )
            return False
        self.queue.put_nowait(data)
        return True

    def close(self) -> None:
        self.queue.put_nowait(None)

    async def run(self) -> None:
        while True:
            data = await self.queue.get()
            try:
                if data is None:
                    return
                if self.writable:
                    await self.transport.send(data)
            except (ConnectionClosed, OSError) as exc:
                logger.info(
                    "Connection %s is not writable (%s)", self.connection_id, exc
                )
                self.writable = False
            except Exception:
                logger.exception(
                    "Connection %s failed to write a frame", self.connection_id
                )
                self.writable = False
            finally:
                self.queue.task_done()


class ConnectionRegistry:
    """
    The set of live connections, keyed by a server-assigned id.

    `transport` objects only need an awaitable `send(data)` method, which is
    what :class:`websockets.asyncio.server.ServerConnection` provides.
    """

    def __init__(self, queue_size: int = OUTBOX_SIZE) -> None:
        self._outboxes: dict[ConnectionId, Outbox] = {}
        self._queue_size = queue_size
        self._writers: set["asyncio.Task[None]"] = set()

    def __contains__(self, connection_id: ConnectionId) -> bool:
        return connection_id in self._outboxes

    def __len__(self) -> int:
        return len(self._outboxes)

    def register(self, transport: Any) -> ConnectionId:
        """
        Record a newly accepted transport and return its connection id.

        Ids are never reused. This must be called from a running event loop.
        """
        connection_id = next_connection_id()
        outbox = Outbox(connection_id, transport, self._queue_size)
        writer = asyncio.ensure_future(outbox.run())
        self._writers.add(writer)
        writer.add_done_callback(self._writers.discard)
        self._outboxes[connection_id] = outbox
        logger.debug("Connection %s registered", connection_id)
        return connection_id

    def unregister(self, connection_id: ConnectionId) -> None:
        """
        Forget a connection. Frames already queued are still written.

        Unknown ids are ignored.
        """
        outbox = self._outboxes.pop(connection_id, None)
        if outbox is not None:
            outbox.close()
            logger.debug("Connection %s unregistered", connection_id)

    def send(self, connection_id: ConnectionId, envelope: Envelope) -> bool:
        """
        Queue an envelope for delivery, without waiting for it to be written.

        Returns `False` if the envelope was dropped because the connection is
        unknown, not writable or has too many frames pending.
        """
        outbox = self._outboxes.get(connection_id)
        if outbox is None:
            logger.debug(
                "Dropping %s for unknown connection %s",
                envelope.kind.value,
                connection_id,
            )
            return False
        logger.debug("> %s %s", connection_id, envelope)
        return outbox.put(encode_envelope(envelope))

    async def flush(self, timeout: Optional[float] = None) -> None:
        """
        Wait for the frames queued so far to be written.
        """
        joins = [
            asyncio.ensure_future(outbox.queue.join())
            for outbox in self._outboxes.values()
        ]
        if joins:
            _, pending = await asyncio.wait(joins, timeout=timeout)
            for task in pending:
                task.cancel()

    async def close(self, timeout: Optional[float] = None) -> None:
        """
        Unregister all connections and wait for their writers to finish.
        """
        for connection_id in list(self._outboxes.keys()):
            self.unregister(connection_id)

        if self._writers:
            _, pending = await asyncio.wait(list(self._writers), timeout=timeout)
            for task in pending:
                task.cancel()
