"""Wire-level data contracts exchanged with a Forq server."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

# Error codes reported by the server in the ``code`` field of error bodies.
ERR_CODE_BAD_REQUEST_CONTENT_EXCEEDS_LIMIT = "bad_request.body.content.exceeds_limit"
ERR_CODE_BAD_REQUEST_PROCESS_AFTER_IN_PAST = "bad_request.body.processAfter.in_past"
ERR_CODE_BAD_REQUEST_PROCESS_AFTER_TOO_FAR = "bad_request.body.processAfter.too_far"
ERR_CODE_BAD_REQUEST_INVALID_BODY = "bad_request.body.invalid"
ERR_CODE_BAD_REQUEST_DLQ_ONLY_OPERATION = "bad_request.dlq_only_operation"
ERR_CODE_UNAUTHORIZED = "unauthorized"
ERR_CODE_NOT_FOUND_MESSAGE = "not_found.message"
ERR_CODE_INTERNAL = "internal"

# Put on an application-owned queue to close it.
CLOSE = None


@dataclass(frozen=True)
class Message:
    """A message delivered by the server."""

    id: str
    content: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Message":
        return cls(id=data["id"], content=data["content"])


@dataclass(frozen=True)
class NewMessage:
    """
    A message to be produced.

    Args:
        content: Message body
        process_after: Optional Unix timestamp in milliseconds before which
            the server keeps the message invisible to consumers
    """

    content: str
    process_after: Optional[int] = None

    def to_json(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"content": self.content}
        if self.process_after:
            data["processAfter"] = self.process_after
        return data


@dataclass(frozen=True)
class QueuedMessage:
    """A NewMessage paired with its destination queue, as fed to AsyncProducer."""

    message: NewMessage
    queue_name: str
