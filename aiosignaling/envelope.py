import dataclasses
import enum
import json
from typing import Any, Callable, ClassVar, Optional, Union


class Kind(enum.Enum):
    # client to server
    JOIN_ROOM = "JOIN_ROOM"
    LEAVE_ROOM = "LEAVE_ROOM"
    PING = "PING"

    # relayed between peers
    OFFER = "OFFER"
    ANSWER = "ANSWER"
    ICE_CANDIDATE = "ICE_CANDIDATE"

    # server to client
    USER_JOINED = "USER_JOINED"
    USER_LEFT = "USER_LEFT"
    ROOM_INFO = "ROOM_INFO"
    PONG = "PONG"


class Envelope:
    """
    Base class for all wire messages.
    """

    kind: ClassVar[Kind]


@dataclasses.dataclass(frozen=True)
class JoinRoom(Envelope):
    kind = Kind.JOIN_ROOM

    room_id: str
    user_id: str


@dataclasses.dataclass(frozen=True)
class LeaveRoom(Envelope):
    kind = Kind.LEAVE_ROOM

    room_id: str


@dataclasses.dataclass(frozen=True)
class Ping(Envelope):
    kind = Kind.PING


@dataclasses.dataclass(frozen=True)
class Pong(Envelope):
    kind = Kind.PONG


@dataclasses.dataclass(frozen=True)
class Relayed(Envelope):
    """
    A handshake message which the relay forwards without looking at its payload.
    """

    payload: Any
    room_id: Optional[str] = None
    user_id: Optional[str] = None

    def routed(self, room_id: str, user_id: str) -> "Relayed":
        """
        Return a copy of this message tagged with routing metadata.
        """
        return dataclasses.replace(self, room_id=room_id, user_id=user_id)


class Offer(Relayed):
    kind = Kind.OFFER


class Answer(Relayed):
    kind = Kind.ANSWER


class IceCandidate(Relayed):
    kind = Kind.ICE_CANDIDATE


@dataclasses.dataclass(frozen=True)
class UserJoined(Envelope):
    kind = Kind.USER_JOINED

    user_id: str
    room_id: str


@dataclasses.dataclass(frozen=True)
class UserLeft(Envelope):
    kind = Kind.USER_LEFT

    user_id: str
    room_id: str


@dataclasses.dataclass(frozen=True)
class RoomInfo(Envelope):
    kind = Kind.ROOM_INFO

    room_id: str
    users: tuple[str, ...]


@dataclasses.dataclass(frozen=True)
class DecodeError:
    """
    Result of decoding a frame which is not a valid envelope.
    """

    reason: str


def unpack_any(value: Any) -> Any:
    return value


def unpack_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError("expected a string")
    return value


def unpack_string_list(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError("expected a list")
    return tuple(unpack_string(item) for item in value)


def pack_any(value: Any) -> Any:
    return value


def pack_string_list(value: tuple[str, ...]) -> list[str]:
    return list(value)


# wire name, attribute name, required, pack, unpack
Field = tuple[str, str, bool, Callable[[Any], Any], Callable[[Any], Any]]

ROOM_ID: Field = ("roomId", "room_id", True, pack_any, unpack_string)
USER_ID: Field = ("userId", "user_id", True, pack_any, unpack_string)
OPTIONAL_ROOM_ID: Field = ("roomId", "room_id", False, pack_any, unpack_string)
OPTIONAL_USER_ID: Field = ("userId", "user_id", False, pack_any, unpack_string)

ENVELOPES: list[tuple[type[Envelope], list[Field]]] = [
    (JoinRoom, [ROOM_ID, USER_ID]),
    (LeaveRoom, [ROOM_ID]),
    (Ping, []),
    (Pong, []),
    (
        Offer,
        [
            ("offer", "payload", True, pack_any, unpack_any),
            OPTIONAL_ROOM_ID,
            OPTIONAL_USER_ID,
        ],
    ),
    (
        Answer,
        [
            ("answer", "payload", True, pack_any, unpack_any),
            OPTIONAL_ROOM_ID,
            OPTIONAL_USER_ID,
        ],
    ),
    (
        IceCandidate,
        [
            ("candidate", "payload", True, pack_any, unpack_any),
            OPTIONAL_ROOM_ID,
            OPTIONAL_USER_ID,
        ],
    ),
    (UserJoined, [USER_ID, ROOM_ID]),
    (UserLeft, [USER_ID, ROOM_ID]),
    (
        RoomInfo,
        [ROOM_ID, ("users", "users", True, pack_string_list, unpack_string_list)],
    ),
]

ENVELOPES_BY_KIND = dict((cls.kind, (cls, fields)) for cls, fields in ENVELOPES)


def decode_envelope(data: Union[str, bytes]) -> Union[Envelope, DecodeError]:
    """
    Parses a wire frame.

    The return value is either an :class:`Envelope` or a :class:`DecodeError`
    describing why the frame was rejected. Unknown top-level fields are ignored.
    """
    try:
        obj = json.loads(data)
    except (ValueError, RecursionError):
        return DecodeError("frame is not valid JSON")
    if not isinstance(obj, dict):
        return DecodeError("frame is not a JSON object")

    type_name = obj.get("type")
    if not isinstance(type_name, str):
        return DecodeError("message type is missing")
    try:
        kind = Kind(type_name)
    except ValueError:
        return DecodeError("unknown message type %r" % type_name)

    cls, fields = ENVELOPES_BY_KIND[kind]
    kwargs = {}
    for wire_name, attr_name, required, _, attr_unpack in fields:
        value = obj.get(wire_name)
        if value is None:
            if required:
                return DecodeError("%s is missing %s" % (kind.value, wire_name))
            continue
        try:
            kwargs[attr_name] = attr_unpack(value)
        except ValueError as exc:
            return DecodeError("%s has invalid %s (%s)" % (kind.value, wire_name, exc))
    return cls(**kwargs)


def encode_envelope(envelope: Envelope) -> str:
    """
    Serialize an envelope to a JSON text frame.

    Optional fields which are not set are left out.
    """
    _, fields = ENVELOPES_BY_KIND[envelope.kind]
    obj = {"type": envelope.kind.value}
    for wire_name, attr_name, _, attr_pack, _ in fields:
        value = getattr(envelope, attr_name)
        if value is not None:
            obj[wire_name] = attr_pack(value)
    return json.dumps(obj)
