"""messagehub: a message collection with live change broadcasts.

Library API::

    from messagehub import MessageHub

    hub = MessageHub(data_file="data.json", port=4000)
    hub.run()
"""

from __future__ import annotations

import asyncio
import logging

from messagehub.config import Config

__all__ = ["MessageHub", "Config"]


class MessageHub:
    """High-level API for running messagehub as a library.

    Args:
        data_file: JSON file holding the collection. Defaults to
            ``<working_dir>/data.json``.
        host: Interface to bind.
        port: Port to listen on.
        working_dir: Base directory for the default data file.
    """

    def __init__(
        self,
        data_file: str | None = None,
        host: str | None = None,
        port: int | None = None,
        working_dir: str | None = None,
    ):
        self.config = Config.from_args(
            host=host,
            port=port,
            data_file=data_file,
            cwd=working_dir,
        )

    def create_app(self):
        """Build the FastAPI app with a fresh store and broadcaster."""
        from messagehub.api.app import create_api
        from messagehub.broadcaster import Broadcaster
        from messagehub.store import MessageStore

        store = MessageStore(self.config.data_file)
        broadcaster = Broadcaster(queue_size=self.config.queue_size)
        return create_api(store, broadcaster)

    def run(self) -> None:
        """Start the server (blocking)."""
        from messagehub.api.app import serve

        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.INFO,
        )
        logger = logging.getLogger(__name__)

        errors = self.config.validate()
        if errors:
            raise ValueError("; ".join(errors))

        logger.info("Data file: %s", self.config.data_file)
        asyncio.run(serve(self.create_app(), self.config.host, self.config.port))
