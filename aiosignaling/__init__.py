import logging

from .client import SignalingClient
from .envelope import (
    Answer,
    DecodeError,
    Envelope,
    IceCandidate,
    JoinRoom,
    Kind,
    LeaveRoom,
    Offer,
    Ping,
    Pong,
    RoomInfo,
    UserJoined,
    UserLeft,
    decode_envelope,
    encode_envelope,
)
from .registry import ConnectionRegistry
from .rooms import RoomTable
from .router import Router
from .server import SignalingServer, run_signaling_server

__all__ = [
    "Answer",
    "ConnectionRegistry",
    "DecodeError",
    "Envelope",
    "IceCandidate",
    "JoinRoom",
    "Kind",
    "LeaveRoom",
    "Offer",
    "Ping",
    "Pong",
    "RoomInfo",
    "RoomTable",
    "Router",
    "SignalingClient",
    "SignalingServer",
    "UserJoined",
    "UserLeft",
    "decode_envelope",
    "encode_envelope",
    "run_signaling_server",
]
__version__ = "0.1.0"

# Set default logging handler to avoid "No handler found" warnings.
logging.getLogger(__name__).addHandler(logging.NullHandler())
