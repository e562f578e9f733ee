import asyncio
import functools
import logging
import os
from collections.abc import Callable, Coroutine
from typing import Any

from aiosignaling.envelope import Envelope


def asynctest(
    coro: Callable[..., Coroutine[None, None, None]],
) -> Callable[..., None]:
    @functools.wraps(coro)
    def wrap(*args: Any, **kwargs: Any) -> None:
        asyncio.run(coro(*args, **kwargs))

    return wrap


class DummyTransport:
    """
    Records the frames written to it.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, data: str) -> None:
        self.sent.append(data)


class BlockingTransport(DummyTransport):
    """
    Holds every write until `release` is set.
    """

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def send(self, data: str) -> None:
        await self.release.wait()
        self.sent.append(data)


class BrokenTransport(DummyTransport):
    async def send(self, data: str) -> None:
        raise ConnectionResetError("Connection reset by peer")


class FailingTransport(DummyTransport):
    async def send(self, data: str) -> None:
        raise RuntimeError("transport is in a bad state")


class RegistryMock:
    """
    Stands in for a ConnectionRegistry, delivering envelopes to a list.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[int, Envelope]] = []
        self.unregistered: list[int] = []

    def send(self, connection_id: int, envelope: Envelope) -> bool:
        self.sent.append((connection_id, envelope))
        return True

    def unregister(self, connection_id: int) -> None:
        self.unregistered.append(connection_id)

    def received(self, connection_id: int) -> list[Envelope]:
        return [envelope for recipient, envelope in self.sent if recipient == connection_id]

    def pop(self) -> list[tuple[int, Envelope]]:
        sent, self.sent = self.sent, []
        return sent


if os.environ.get("AIOSIGNALING_DEBUG"):
    logging.basicConfig(level=logging.DEBUG)
