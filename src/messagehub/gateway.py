"""Single entry point for writes: persist, then broadcast once."""

from __future__ import annotations

import logging

from messagehub.broadcaster import Broadcaster
from messagehub.errors import ValidationError
from messagehub.models import Event, Message, Topic
from messagehub.store import MessageStore

logger = logging.getLogger(__name__)


def _check_optional_str(name: str, value: object) -> None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"'{name}' must be a string")


class MutationGateway:
    """Routes every create/update through the store and the broadcaster.

    Both front-ends write through this class so each successful change
    yields exactly one event. Nothing is published when the store call
    fails.
    """

    def __init__(self, store: MessageStore, broadcaster: Broadcaster) -> None:
        self.store = store
        self.broadcaster = broadcaster

    async def create_message(self, content: str, word: str | None = None) -> Message:
        if content is None:
            raise ValidationError("'content' is required")
        _check_optional_str("content", content)
        _check_optional_str("word", word)

        message = await self.store.create(content, word)
        self._publish(Topic.MESSAGE_ADDED, message)
        return message

    async def update_message(
        self,
        message_id: int,
        content: str | None = None,
        word: str | None = None,
    ) -> Message:
        if isinstance(message_id, bool) or not isinstance(message_id, int):
            raise ValidationError("'id' must be an integer")
        _check_optional_str("content", content)
        _check_optional_str("word", word)

        message = await self.store.update(message_id, content, word)
        self._publish(Topic.MESSAGE_UPDATED, message)
        return message

    def _publish(self, topic: Topic, message: Message) -> None:
        logger.debug(
            "Publishing %s for message %d to %d subscriber(s)",
            topic.value,
            message.id,
            self.broadcaster.subscriber_count(topic),
        )
        self.broadcaster.publish(Event(topic, message))
