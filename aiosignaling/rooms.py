import logging
from typing import Optional

logger = logging.getLogger(__name__)

ConnectionId = int
Member = tuple[ConnectionId, str]


class RoomTable:
    """
    The set of active rooms and their members.

    A room exists only while it has at least one member: it is created by the
    first :meth:`join` and deleted by the :meth:`leave` which removes its last
    member.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, dict[ConnectionId, str]] = {}
        self._rooms_by_connection: dict[ConnectionId, set[str]] = {}

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def room_ids(self) -> list[str]:
        return list(self._rooms)

    def join(
        self, room_id: str, connection_id: ConnectionId, user_id: str
    ) -> tuple[list[Member], list[Member]]:
        """
        Add a connection to a room, creating the room if needed.

        Returns a `(existing, others)` tuple: the members present before the
        join and the members which should be told about it. If the connection
        was already a member, its user identity is refreshed and nobody needs
        to be told.
        """
        room = self._rooms.get(room_id)
        if room is None:
            room = self._rooms[room_id] = {}
            logger.info("Room %s created", room_id)

        rejoin = connection_id in room
        existing = [
            (member_id, member_user)
            for member_id, member_user in room.items()
            if member_id != connection_id
        ]
        room[connection_id] = user_id
        self._rooms_by_connection.setdefault(connection_id, set()).add(room_id)

        if rejoin:
            return existing, []
        return existing, list(existing)

    def leave(self, room_id: str, connection_id: ConnectionId) -> Optional[str]:
        """
        Remove a connection from a room.

        Returns the user identity the connection joined with, or `None` if it
        was not a member. An emptied room is deleted before returning.
        """
        room = self._rooms.get(room_id)
        if room is None or connection_id not in room:
            return None

        user_id = room.pop(connection_id)
        connection_rooms = self._rooms_by_connection[connection_id]
        connection_rooms.discard(room_id)
        if not connection_rooms:
            del self._rooms_by_connection[connection_id]

        if not room:
            del self._rooms[room_id]
            logger.info("Room %s deleted (empty)", room_id)
        return user_id

    def find_room_of(self, connection_id: ConnectionId) -> Optional[str]:
        """
        Return the room the connection is in, if any.
        """
        room_ids = self._rooms_by_connection.get(connection_id)
        if room_ids:
            return min(room_ids)
        return None

    def rooms_of(self, connection_id: ConnectionId) -> list[str]:
        """
        Return every room containing the connection.

        Every room is scanned, independently of the connection index.
        """
        return [
            room_id for room_id, room in self._rooms.items() if connection_id in room
        ]

    def members(self, room_id: str) -> list[Member]:
        return list(self._rooms.get(room_id, {}).items())

    def user_of(self, room_id: str, connection_id: ConnectionId) -> Optional[str]:
        return self._rooms.get(room_id, {}).get(connection_id)
