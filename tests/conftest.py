"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from messagehub.broadcaster import Broadcaster
from messagehub.gateway import MutationGateway
from messagehub.store import MessageStore


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Provide a data file path inside a temporary directory."""
    return tmp_path / "data.json"


@pytest.fixture
def store(data_file: Path) -> MessageStore:
    """Provide an empty MessageStore backed by a temp file."""
    return MessageStore(data_file)


@pytest.fixture
def broadcaster() -> Broadcaster:
    return Broadcaster()


@pytest.fixture
def gateway(store: MessageStore, broadcaster: Broadcaster) -> MutationGateway:
    return MutationGateway(store, broadcaster)
