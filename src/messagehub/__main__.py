"""Entry point for the messagehub server."""

import argparse
import asyncio
import logging
import sys

from messagehub.api.app import create_api, serve
from messagehub.broadcaster import Broadcaster
from messagehub.config import Config
from messagehub.store import MessageStore


def main():
    """Parse arguments, build the store and broadcaster, and serve."""
    parser = argparse.ArgumentParser(
        description="messagehub: message collection with live change broadcasts",
    )
    parser.add_argument("--host", help="Interface to bind")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument("--data-file", help="JSON file holding the messages")
    parser.add_argument("--cwd", help="Working directory")
    args = parser.parse_args()

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )
    logger = logging.getLogger(__name__)

    config = Config.from_args(
        host=args.host,
        port=args.port,
        data_file=args.data_file,
        cwd=args.cwd,
    )

    errors = config.validate()
    if errors:
        for err in errors:
            logger.error(err)
        sys.exit(1)

    logger.info("Data file: %s", config.data_file)

    store = MessageStore(config.data_file)
    broadcaster = Broadcaster(queue_size=config.queue_size)
    app = create_api(store, broadcaster)
    asyncio.run(serve(app, config.host, config.port))


if __name__ == "__main__":
    main()
