"""Environment configuration loaded from .env, env vars, or programmatic input."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from messagehub.broadcaster import DEFAULT_QUEUE_SIZE

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 4000
DATA_FILE_NAME = "data.json"


def _parse_int(raw: str | None, default: int) -> int | None:
    """Parse an integer setting. Empty means default, garbage means None."""
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass
class Config:
    """Server configuration. Can be built from env, CLI args, or programmatic input."""

    host: str = DEFAULT_HOST
    port: int | None = DEFAULT_PORT
    working_dir: str = field(default_factory=os.getcwd)
    data_file: Path | None = None
    queue_size: int | None = DEFAULT_QUEUE_SIZE

    def __post_init__(self):
        """Set default data_file based on working_dir if not provided."""
        if self.data_file is None:
            self.data_file = Path(self.working_dir) / DATA_FILE_NAME
        else:
            self.data_file = Path(self.data_file)

    @classmethod
    def from_env(cls) -> Config:
        """Load config from environment variables and .env file."""
        load_dotenv()
        data_file = os.getenv("MESSAGEHUB_DATA_FILE")
        return cls(
            host=os.getenv("MESSAGEHUB_HOST") or DEFAULT_HOST,
            port=_parse_int(os.getenv("MESSAGEHUB_PORT"), DEFAULT_PORT),
            working_dir=os.getcwd(),
            data_file=Path(data_file) if data_file else None,
            queue_size=_parse_int(os.getenv("MESSAGEHUB_QUEUE_SIZE"), DEFAULT_QUEUE_SIZE),
        )

    @classmethod
    def from_args(
        cls,
        host: str | None = None,
        port: int | None = None,
        data_file: str | None = None,
        cwd: str | None = None,
    ) -> Config:
        """Build config from explicit arguments, falling back to env."""
        env = cls.from_env()
        working_dir = cwd or env.working_dir
        if data_file is not None:
            path: Path | None = Path(data_file)
        elif cwd is not None and not os.getenv("MESSAGEHUB_DATA_FILE"):
            path = None
        else:
            path = env.data_file
        return cls(
            host=host or env.host,
            port=port if port is not None else env.port,
            working_dir=working_dir,
            data_file=path,
            queue_size=env.queue_size,
        )

    def validate(self) -> list[str]:
        """Return list of validation errors, empty if config is valid."""
        errors = []
        if self.port is None or not 0 < self.port < 65536:
            errors.append(
                "MESSAGEHUB_PORT must be an integer between 1 and 65535."
            )
        if self.queue_size is None or self.queue_size < 1:
            errors.append("MESSAGEHUB_QUEUE_SIZE must be a positive integer.")
        if self.data_file is not None and self.data_file.is_dir():
            errors.append(f"Data file {self.data_file} is a directory.")
        return errors
