"""Message and change-event types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Topic(str, Enum):
    """Broadcast topics, one per kind of change."""

    MESSAGE_ADDED = "MessageAdded"
    MESSAGE_UPDATED = "MessageUpdated"


@dataclass(frozen=True)
class Message:
    """A snapshot of one message in the collection."""

    id: int
    content: str
    word: str | None = None

    def to_dict(self) -> dict:
        return {"id": self.id, "content": self.content, "word": self.word}

    def to_record(self) -> dict:
        """Persisted form. ``word`` is left out when absent."""
        record: dict = {"id": self.id, "content": self.content}
        if self.word is not None:
            record["word"] = self.word
        return record

    @classmethod
    def from_record(cls, record: dict) -> Message:
        return cls(
            id=int(record["id"]),
            content=record["content"],
            word=record.get("word"),
        )


@dataclass(frozen=True)
class Event:
    """A change notification carrying the message as it was after the change."""

    topic: Topic
    message: Message
