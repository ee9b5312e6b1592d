"""Message collection with JSON file persistence."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import replace
from pathlib import Path

from messagehub.errors import MessageNotFound, PersistenceFailure
from messagehub.models import Message

logger = logging.getLogger(__name__)


class MessageStore:
    """Owns the ordered message collection and its data file.

    The file is read on first access and overwritten in full after every
    mutation. Mutations are serialized by a lock and only become visible
    once the new collection is on disk.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._messages: list[Message] | None = None
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def list(self) -> list[Message]:
        """Return every message in insertion order."""
        return list(await self._loaded())

    async def count(self) -> int:
        return len(await self._loaded())

    async def get(self, message_id: int) -> Message:
        """Return the message with the given id or raise MessageNotFound."""
        messages = await self._loaded()
        return messages[self._index_of(messages, message_id)]

    async def create(self, content: str, word: str | None = None) -> Message:
        """Append a new message and persist the collection."""
        async with self._lock:
            messages = await self._loaded_locked()
            # Next id is the collection size plus one. This matches the
            # historical numbering and relies on there being no deletes.
            message = Message(id=len(messages) + 1, content=content, word=word)
            updated = [*messages, message]
            await self._commit(updated)
        logger.info("Created message %d", message.id)
        return message

    async def update(
        self,
        message_id: int,
        content: str | None = None,
        word: str | None = None,
    ) -> Message:
        """Merge the supplied fields over a message and persist.

        ``None`` means "leave unchanged"; pass ``""`` to clear content.
        """
        async with self._lock:
            messages = await self._loaded_locked()
            index = self._index_of(messages, message_id)
            current = messages[index]
            message = replace(
                current,
                content=current.content if content is None else content,
                word=current.word if word is None else word,
            )
            updated = list(messages)
            updated[index] = message
            await self._commit(updated)
        logger.info("Updated message %d", message.id)
        return message

    @staticmethod
    def _index_of(messages: list[Message], message_id: int) -> int:
        for i, m in enumerate(messages):
            if m.id == message_id:
                return i
        raise MessageNotFound(message_id)

    async def _loaded(self) -> list[Message]:
        if self._messages is None:
            async with self._lock:
                return await self._loaded_locked()
        return self._messages

    async def _loaded_locked(self) -> list[Message]:
        # Caller holds self._lock
        if self._messages is None:
            self._messages = await asyncio.to_thread(self._load)
        return self._messages

    def _load(self) -> list[Message]:
        if not self._path.exists():
            logger.info("No data file at %s, starting empty.", self._path)
            return []
        try:
            records = json.loads(self._path.read_text())
            messages = [Message.from_record(r) for r in records]
        except (OSError, json.JSONDecodeError, TypeError, KeyError, ValueError) as e:
            logger.error("Failed to load messages from %s: %s", self._path, e)
            raise PersistenceFailure(f"Cannot load {self._path}: {e}") from e
        logger.info("Loaded %d message(s) from %s", len(messages), self._path)
        return messages

    async def _commit(self, messages: list[Message]) -> None:
        try:
            await asyncio.to_thread(self._write, messages)
        except OSError as e:
            logger.error("Failed to persist messages to %s: %s", self._path, e)
            raise PersistenceFailure(f"Cannot write {self._path}: {e}") from e
        self._messages = messages

    def _write(self, messages: list[Message]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_name(self._path.name + ".tmp")
        tmp.write_text(json.dumps([m.to_record() for m in messages], indent=2))
        os.replace(tmp, self._path)
