import logging
from typing import Any, Optional
from urllib.parse import urlencode

import websockets.exceptions
from websockets.asyncio.client import ClientConnection, connect

from . import exceptions
from .envelope import (
    Answer,
    DecodeError,
    Envelope,
    IceCandidate,
    JoinRoom,
    LeaveRoom,
    Offer,
    Ping,
    decode_envelope,
    encode_envelope,
)

logger = logging.getLogger(__name__)


class SignalingClient:
    """
    A peer's connection to the signaling relay.

    .. code-block:: python

        async with SignalingClient("ws://127.0.0.1:8080") as client:
            await client.join("r1", "alice")
            async for envelope in client:
                ...
    """

    def __init__(self, uri: str, token: Optional[str] = None) -> None:
        self.uri = uri
        self.token = token
        #: The room joined with join(), if any.
        self.room_id: Optional[str] = None
        #: The user identity declared with join(), if any.
        self.user_id: Optional[str] = None

        self._websocket: Optional[ClientConnection] = None

    async def __aenter__(self) -> "SignalingClient":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __aiter__(self) -> "SignalingClient":
        return self

    async def __anext__(self) -> Envelope:
        try:
            return await self.recv()
        except exceptions.ConnectionClosed:
            raise StopAsyncIteration

    async def connect(self) -> None:
        uri = self.uri
        if self.token is not None:
            separator = "&" if "?" in uri else "?"
            uri += separator + urlencode({"token": self.token})
        self._websocket = await connect(uri)
        logger.info("Connected to %s", self.uri)

    async def close(self) -> None:
        if self._websocket is not None:
            await self._websocket.close()
            self._websocket = None
            self.room_id = None
            self.user_id = None

    async def join(self, room_id: str, user_id: str) -> None:
        """
        Join a room. The relay answers with a ROOM_INFO listing the users
        already present.
        """
        await self.send(JoinRoom(room_id=room_id, user_id=user_id))
        self.room_id = room_id
        self.user_id = user_id

    async def leave(self) -> None:
        if self.room_id is None:
            return
        await self.send(LeaveRoom(room_id=self.room_id))
        self.room_id = None

    async def send_offer(self, offer: Any) -> None:
        await self.send(
            Offer(payload=offer, room_id=self.room_id, user_id=self.user_id)
        )

    async def send_answer(self, answer: Any) -> None:
        await self.send(
            Answer(payload=answer, room_id=self.room_id, user_id=self.user_id)
        )

    async def send_ice_candidate(self, candidate: Any) -> None:
        await self.send(
            IceCandidate(payload=candidate, room_id=self.room_id, user_id=self.user_id)
        )

    async def ping(self) -> None:
        await self.send(Ping())

    async def send(self, envelope: Envelope) -> None:
        websocket = self._connection()
        logger.debug("> %s", envelope)
        try:
            await websocket.send(encode_envelope(envelope))
        except websockets.exceptions.ConnectionClosed as exc:
            raise exceptions.ConnectionClosed from exc

    async def recv(self) -> Envelope:
        """
        Receive the next envelope from the relay.

        If the connection is closed, a `ConnectionClosed` is raised. If the
        relay sends a frame which cannot be decoded, a `ProtocolError` is
        raised.
        """
        websocket = self._connection()
        try:
            data = await websocket.recv()
        except websockets.exceptions.ConnectionClosed as exc:
            raise exceptions.ConnectionClosed from exc

        envelope = decode_envelope(data)
        if isinstance(envelope, DecodeError):
            raise exceptions.ProtocolError(envelope.reason)
        logger.debug("< %s", envelope)
        return envelope

    def _connection(self) -> ClientConnection:
        if self._websocket is None:
            raise exceptions.ConnectionClosed
        return self._websocket
