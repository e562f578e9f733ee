import logging
from typing import Union

from .envelope import (
    DecodeError,
    Envelope,
    JoinRoom,
    LeaveRoom,
    Ping,
    Pong,
    Relayed,
    RoomInfo,
    UserJoined,
    UserLeft,
    decode_envelope,
)
from .registry import ConnectionRegistry
from .rooms import ConnectionId, Member, RoomTable

logger = logging.getLogger(__name__)


class Router:
    """
    The signaling state machine.

    A connection is either outside any room or joined to one room; this is
    read from the room table on every event. None of the handlers await, so
    on a single event loop each event is processed to completion before the
    next one starts.
    """

    def __init__(self, registry: ConnectionRegistry, rooms: RoomTable) -> None:
        self.registry = registry
        self.rooms = rooms

    def handle_message(
        self, connection_id: ConnectionId, data: Union[str, bytes]
    ) -> None:
        """
        Handle a raw frame received on a connection.
        """
        envelope = decode_envelope(data)
        if isinstance(envelope, DecodeError):
            logger.warning(
                "Connection %s sent an invalid envelope: %s",
                connection_id,
                envelope.reason,
            )
            return
        self.handle_envelope(connection_id, envelope)

    def handle_envelope(self, connection_id: ConnectionId, envelope: Envelope) -> None:
        logger.debug("< %s %s", connection_id, envelope)

        if isinstance(envelope, JoinRoom):
            self._join(connection_id, envelope.room_id, envelope.user_id)
        elif isinstance(envelope, Relayed):
            self._relay(connection_id, envelope)
        elif isinstance(envelope, LeaveRoom):
            self._leave(connection_id, envelope.room_id)
        elif isinstance(envelope, Ping):
            self.registry.send(connection_id, Pong())
        else:
            logger.warning(
                "Connection %s sent unexpected message type %s",
                connection_id,
                envelope.kind.value,
            )

    def handle_disconnect(self, connection_id: ConnectionId) -> None:
        """
        Remove a closed connection from every room and from the registry.

        Calling this more than once for the same connection has no effect.
        """
        for room_id in self.rooms.rooms_of(connection_id):
            self._leave(connection_id, room_id)
        self.registry.unregister(connection_id)

    def _broadcast(self, recipients: list[Member], envelope: Envelope) -> None:
        for member_id, _ in recipients:
            self.registry.send(member_id, envelope)

    def _join(self, connection_id: ConnectionId, room_id: str, user_id: str) -> None:
        # a connection is in at most one room, switching rooms leaves the old one
        for other_room_id in self.rooms.rooms_of(connection_id):
            if other_room_id != room_id:
                self._leave(connection_id, other_room_id)

        # a new identity in the same room is announced as a leave then a join
        previous_user_id = self.rooms.user_of(room_id, connection_id)
        if previous_user_id is not None and previous_user_id != user_id:
            self._leave(connection_id, room_id)

        existing, others = self.rooms.join(room_id, connection_id, user_id)
        logger.info("User %s joined room %s", user_id, room_id)

        self._broadcast(others, UserJoined(user_id=user_id, room_id=room_id))
        self.registry.send(
            connection_id,
            RoomInfo(room_id=room_id, users=tuple(user for _, user in existing)),
        )

    def _leave(self, connection_id: ConnectionId, room_id: str) -> None:
        user_id = self.rooms.leave(room_id, connection_id)
        if user_id is None:
            logger.debug("Connection %s is not in room %s", connection_id, room_id)
            return
        logger.info("User %s left room %s", user_id, room_id)

        self._broadcast(
            self.rooms.members(room_id), UserLeft(user_id=user_id, room_id=room_id)
        )

    def _relay(self, connection_id: ConnectionId, envelope: Relayed) -> None:
        room_id = self.rooms.find_room_of(connection_id)
        if room_id is None:
            logger.debug(
                "Connection %s sent %s outside of a room",
                connection_id,
                envelope.kind.value,
            )
            return

        user_id = self.rooms.user_of(room_id, connection_id)
        assert user_id is not None
        recipients = [
            (member_id, member_user)
            for member_id, member_user in self.rooms.members(room_id)
            if member_id != connection_id
        ]
        self._broadcast(recipients, envelope.routed(room_id, user_id))
