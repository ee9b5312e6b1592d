"""Error kinds raised by the store and the mutation gateway."""

from __future__ import annotations


class MessageHubError(Exception):
    """Base class for messagehub errors."""


class ValidationError(MessageHubError):
    """A required field is missing or malformed."""


class MessageNotFound(MessageHubError):
    """An update targeted an id that is not in the collection."""

    def __init__(self, message_id: int) -> None:
        super().__init__(f"Message {message_id} not found")
        self.message_id = message_id


class PersistenceFailure(MessageHubError):
    """Reading or writing the data file failed."""
