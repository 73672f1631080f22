# chat/documents.py
from __future__ import annotations

import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class InvalidMessage(ValueError):
    """A stored or submitted message is missing a field or has a bad value."""


def now_ms() -> int:
    return int(time.time() * 1000)


def _require(data: Dict[str, Any], key: str) -> Any:
    if key not in data or data[key] is None:
        raise InvalidMessage(f"missing field: {key}")
    return data[key]


def parse_role(value: Any) -> Role:
    try:
        return Role(value)
    except ValueError:
        raise InvalidMessage(f"invalid role: {value!r}")


def parse_timestamp(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidMessage(f"invalid timestamp: {value!r}")
    return int(value)


@dataclass(frozen=True)
class ChatMessage:
    """A single chat turn embedded in a Conversation document."""

    id: str
    conversation_id: str
    content: str
    role: Role
    timestamp: int
    animated: bool = False

    @classmethod
    def create(
        cls,
        conversation_id: str,
        content: str,
        role: Role,
        *,
        animated: bool = False,
        timestamp: Optional[int] = None,
    ) -> "ChatMessage":
        """New, not yet stored message. The store assigns the id on append."""
        if not isinstance(content, str):
            raise InvalidMessage("content must be a string")
        if not conversation_id:
            raise InvalidMessage("missing field: conversation_id")
        return cls(
            id="",
            conversation_id=str(conversation_id),
            content=content,
            role=parse_role(role),
            timestamp=now_ms() if timestamp is None else parse_timestamp(timestamp),
            animated=bool(animated),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        if not isinstance(data, dict):
            raise InvalidMessage("message must be an object")
        content = _require(data, "content")
        if not isinstance(content, str):
            raise InvalidMessage("content must be a string")
        return cls(
            id=str(_require(data, "id")),
            conversation_id=str(data.get("conversationId") or ""),
            content=content,
            role=parse_role(_require(data, "role")),
            timestamp=parse_timestamp(_require(data, "timestamp")),
            animated=bool(data.get("animated", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "content": self.content,
            "role": self.role.value,
            "timestamp": self.timestamp,
            "animated": self.animated,
        }

    def with_id(self, message_id: str) -> "ChatMessage":
        return replace(self, id=str(message_id))

    def mark_animated(self) -> "ChatMessage":
        return self if self.animated else replace(self, animated=True)
