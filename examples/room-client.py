#!/usr/bin/env python
#
# Join a room on the signaling relay and exchange dummy handshake messages.
#

import argparse
import asyncio
import logging

from aiosignaling import Offer, RoomInfo, SignalingClient, UserJoined, UserLeft

SIGNALING_URI = "ws://127.0.0.1:8080"


async def run(options):
    async with SignalingClient(options.uri, token=options.token) as client:
        await client.join(options.room, options.user)

        async for envelope in client:
            if isinstance(envelope, RoomInfo):
                print("users already in room:", list(envelope.users))
                # the newcomer starts the handshake with everyone present
                if envelope.users:
                    await client.send_offer("offer from %s" % options.user)
            elif isinstance(envelope, UserJoined):
                print("user joined:", envelope.user_id)
            elif isinstance(envelope, UserLeft):
                print("user left:", envelope.user_id)
            elif isinstance(envelope, Offer):
                print("received offer from", envelope.user_id, envelope.payload)
                await client.send_answer("answer from %s" % options.user)
            else:
                print("received", envelope)


parser = argparse.ArgumentParser(description="Signaling room client")
parser.add_argument("room")
parser.add_argument("user")
parser.add_argument("--uri", default=SIGNALING_URI)
parser.add_argument("--token")
parser.add_argument("--verbose", "-v", action="count")
options = parser.parse_args()

if options.verbose:
    logging.basicConfig(level=logging.DEBUG)

asyncio.run(run(options))
