import dataclasses
import json
import unittest

from aiosignaling.envelope import (
    Answer,
    DecodeError,
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


class DecodeTest(unittest.TestCase):
    def test_join_room(self):
        envelope = decode_envelope('{"type": "JOIN_ROOM", "roomId": "r1", "userId": "alice"}')
        self.assertEqual(envelope, JoinRoom(room_id="r1", user_id="alice"))
        self.assertEqual(envelope.kind, Kind.JOIN_ROOM)

    def test_join_room_with_unknown_fields(self):
        envelope = decode_envelope(
            json.dumps(
                {
                    "type": "JOIN_ROOM",
                    "data": "",
                    "roomId": "test-room-123",
                    "userId": "alice",
                    "timestamp": 1700000000000,
                }
            )
        )
        self.assertEqual(envelope, JoinRoom(room_id="test-room-123", user_id="alice"))

    def test_join_room_missing_user(self):
        envelope = decode_envelope('{"type": "JOIN_ROOM", "roomId": "r1"}')
        self.assertEqual(envelope, DecodeError("JOIN_ROOM is missing userId"))

    def test_join_room_null_room(self):
        envelope = decode_envelope('{"type": "JOIN_ROOM", "roomId": null, "userId": "a"}')
        self.assertEqual(envelope, DecodeError("JOIN_ROOM is missing roomId"))

    def test_join_room_invalid_room(self):
        envelope = decode_envelope('{"type": "JOIN_ROOM", "roomId": 12, "userId": "a"}')
        self.assertIsInstance(envelope, DecodeError)
        self.assertEqual(
            envelope.reason, "JOIN_ROOM has invalid roomId (expected a string)"
        )

    def test_leave_room(self):
        envelope = decode_envelope('{"type": "LEAVE_ROOM", "roomId": "r1"}')
        self.assertEqual(envelope, LeaveRoom(room_id="r1"))

    def test_offer(self):
        envelope = decode_envelope(
            '{"type": "OFFER", "offer": "sdp...", "roomId": "r1", "userId": "alice"}'
        )
        self.assertEqual(
            envelope, Offer(payload="sdp...", room_id="r1", user_id="alice")
        )
        self.assertEqual(envelope.kind, Kind.OFFER)

    def test_offer_without_routing(self):
        envelope = decode_envelope('{"type": "OFFER", "offer": "sdp..."}')
        self.assertEqual(envelope, Offer(payload="sdp..."))
        self.assertIsNone(envelope.room_id)
        self.assertIsNone(envelope.user_id)

    def test_offer_missing_payload(self):
        envelope = decode_envelope('{"type": "OFFER", "roomId": "r1", "userId": "a"}')
        self.assertEqual(envelope, DecodeError("OFFER is missing offer"))

    def test_answer_object_payload(self):
        envelope = decode_envelope(
            json.dumps({"type": "ANSWER", "answer": {"type": "answer", "sdp": "v=0"}})
        )
        self.assertEqual(envelope, Answer(payload={"type": "answer", "sdp": "v=0"}))

    def test_ice_candidate(self):
        envelope = decode_envelope(
            json.dumps(
                {
                    "type": "ICE_CANDIDATE",
                    "candidate": "candidate:1 1 udp 659136 1.2.3.4 31102 typ host",
                    "roomId": "r1",
                    "userId": "bob",
                }
            )
        )
        self.assertEqual(
            envelope,
            IceCandidate(
                payload="candidate:1 1 udp 659136 1.2.3.4 31102 typ host",
                room_id="r1",
                user_id="bob",
            ),
        )

    def test_offer_and_answer_differ(self):
        self.assertNotEqual(Offer(payload="x"), Answer(payload="x"))

    def test_ping(self):
        self.assertEqual(decode_envelope('{"type": "PING"}'), Ping())

    def test_room_info(self):
        envelope = decode_envelope(
            '{"type": "ROOM_INFO", "roomId": "r1", "users": ["alice", "bob"]}'
        )
        self.assertEqual(envelope, RoomInfo(room_id="r1", users=("alice", "bob")))

    def test_room_info_invalid_users(self):
        envelope = decode_envelope('{"type": "ROOM_INFO", "roomId": "r1", "users": "alice"}')
        self.assertEqual(
            envelope, DecodeError("ROOM_INFO has invalid users (expected a list)")
        )

        envelope = decode_envelope('{"type": "ROOM_INFO", "roomId": "r1", "users": [1]}')
        self.assertEqual(
            envelope, DecodeError("ROOM_INFO has invalid users (expected a string)")
        )

    def test_user_joined_and_left(self):
        self.assertEqual(
            decode_envelope('{"type": "USER_JOINED", "userId": "bob", "roomId": "r1"}'),
            UserJoined(user_id="bob", room_id="r1"),
        )
        self.assertEqual(
            decode_envelope('{"type": "USER_LEFT", "userId": "bob", "roomId": "r1"}'),
            UserLeft(user_id="bob", room_id="r1"),
        )

    def test_bytes(self):
        envelope = decode_envelope(b'{"type": "LEAVE_ROOM", "roomId": "r1"}')
        self.assertEqual(envelope, LeaveRoom(room_id="r1"))

    def test_invalid_json(self):
        self.assertEqual(decode_envelope("{not json"), DecodeError("frame is not valid JSON"))
        self.assertEqual(decode_envelope(b"\xff\xfe"), DecodeError("frame is not valid JSON"))

    def test_deeply_nested(self):
        self.assertEqual(
            decode_envelope("[" * 100000 + "]" * 100000),
            DecodeError("frame is not valid JSON"),
        )
        self.assertEqual(
            decode_envelope('{"type": "OFFER", "offer": ' + "[" * 100000),
            DecodeError("frame is not valid JSON"),
        )

    def test_not_an_object(self):
        self.assertEqual(
            decode_envelope('["JOIN_ROOM"]'), DecodeError("frame is not a JSON object")
        )

    def test_missing_type(self):
        self.assertEqual(
            decode_envelope('{"roomId": "r1"}'), DecodeError("message type is missing")
        )
        self.assertEqual(
            decode_envelope('{"type": 3}'), DecodeError("message type is missing")
        )

    def test_unknown_type(self):
        self.assertEqual(
            decode_envelope('{"type": "ERROR", "data": "oops"}'),
            DecodeError("unknown message type 'ERROR'"),
        )


class EncodeTest(unittest.TestCase):
    def test_user_joined(self):
        data = encode_envelope(UserJoined(user_id="bob", room_id="r1"))
        self.assertEqual(
            json.loads(data), {"type": "USER_JOINED", "userId": "bob", "roomId": "r1"}
        )

    def test_room_info(self):
        data = encode_envelope(RoomInfo(room_id="r1", users=("alice",)))
        self.assertEqual(
            json.loads(data), {"type": "ROOM_INFO", "roomId": "r1", "users": ["alice"]}
        )

    def test_room_info_empty(self):
        data = encode_envelope(RoomInfo(room_id="r1", users=()))
        self.assertEqual(json.loads(data), {"type": "ROOM_INFO", "roomId": "r1", "users": []})

    def test_offer_omits_unset_fields(self):
        data = encode_envelope(Offer(payload="sdp..."))
        self.assertEqual(json.loads(data), {"type": "OFFER", "offer": "sdp..."})

    def test_ice_candidate_object_payload(self):
        payload = {"candidate": "candidate:1", "sdpMid": "0", "sdpMLineIndex": 0}
        data = encode_envelope(IceCandidate(payload=payload, room_id="r1", user_id="a"))
        self.assertEqual(
            json.loads(data),
            {"type": "ICE_CANDIDATE", "candidate": payload, "roomId": "r1", "userId": "a"},
        )

    def test_pong(self):
        self.assertEqual(json.loads(encode_envelope(Pong())), {"type": "PONG"})


class EnvelopeTest(unittest.TestCase):
    def test_immutable(self):
        envelope = JoinRoom(room_id="r1", user_id="alice")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            envelope.room_id = "r2"

    def test_routed(self):
        payload = {"type": "offer", "sdp": "v=0"}
        offer = Offer(payload=payload, room_id="other", user_id="mallory")
        routed = offer.routed("r1", "alice")

        self.assertIsInstance(routed, Offer)
        self.assertIs(routed.payload, payload)
        self.assertEqual(routed.room_id, "r1")
        self.assertEqual(routed.user_id, "alice")

        # the original is untouched
        self.assertEqual(offer.room_id, "other")

    def test_repr(self):
        self.assertEqual(
            repr(LeaveRoom(room_id="r1")), "LeaveRoom(room_id='r1')"
        )
