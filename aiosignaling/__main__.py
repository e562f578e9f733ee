import argparse
import asyncio
import logging
import signal

from .registry import OUTBOX_SIZE
from .server import DEFAULT_HOST, SignalingServer, default_port

logger = logging.getLogger(__name__)


async def run(options: argparse.Namespace) -> None:
    server = SignalingServer(
        host=options.host, port=options.port, queue_size=options.queue_size
    )
    await server.listen()

    loop = asyncio.get_running_loop()
    stop = loop.create_future()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(
            signum, lambda: stop.done() or stop.set_result(None)
        )

    try:
        await stop
    finally:
        logger.info("Shutting down signaling server")
        await server.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="WebRTC signaling relay")
    parser.add_argument("--host", default=DEFAULT_HOST, help="address to listen on")
    parser.add_argument(
        "--port",
        type=int,
        default=default_port(),
        help="port to listen on (default: $PORT or 8080)",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=OUTBOX_SIZE,
        help="maximum number of frames pending per connection",
    )
    parser.add_argument("--verbose", "-v", action="count")
    options = parser.parse_args()

    if options.verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.INFO)

    asyncio.run(run(options))


if __name__ == "__main__":
    main()
