"""
Flat-file chat history: one unversioned JSON array of
{content, role, id, timestamp} objects at settings.CHAT_HISTORY_FILE.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from django.conf import settings

from chat.documents import InvalidMessage, parse_role, parse_timestamp

logger = logging.getLogger(__name__)

# serialises read-merge-save inside one process; other processes can still race
_merge_lock = threading.Lock()


@dataclass(frozen=True)
class HistoryMessage:
    id: Union[str, int, float]
    content: str
    role: str
    timestamp: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryMessage":
        if not isinstance(data, dict):
            raise InvalidMessage("history entry must be an object")
        for key in ("id", "content", "role", "timestamp"):
            if data.get(key) is None:
                raise InvalidMessage(f"missing field: {key}")
        if not isinstance(data["content"], str):
            raise InvalidMessage("content must be a string")
        if _id_key(data["id"]) is None:
            raise InvalidMessage(f"invalid id: {data['id']!r}")
        return cls(
            id=data["id"],
            content=data["content"],
            role=parse_role(data["role"]).value,
            timestamp=parse_timestamp(data["timestamp"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"content": self.content, "role": self.role, "id": self.id, "timestamp": self.timestamp}


class ChatHistoryFile:
    def __init__(self, path):
        self.path = Path(path)

    def read(self) -> List[Dict[str, Any]]:
        """Stored entries; [] when the file is missing or unreadable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as e:
            logger.warning("Could not read chat history %s: %s", self.path, e)
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Chat history %s is not valid JSON, starting empty", self.path)
            return []
        if not isinstance(data, list):
            logger.warning("Chat history %s is not a JSON array, starting empty", self.path)
            return []
        return data

    def save(self, messages: Iterable[Dict[str, Any]]) -> bool:
        """Overwrite the file. Failures are logged, not raised."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(list(messages), indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error saving chat history to %s: %s", self.path, e)
            return False
        return True

    def merge(self, incoming: Iterable[HistoryMessage]) -> List[Dict[str, Any]]:
        with _merge_lock:
            updated = merge_history(self.read(), incoming)
            self.save(updated)
        return updated


def _id_key(value) -> Optional[Tuple[bool, Any]]:
    """Strict id identity: 1 and "1" are different ids."""
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    return (isinstance(value, str), value)


def merge_history(existing: List[Dict[str, Any]], incoming: Iterable[HistoryMessage]) -> List[Dict[str, Any]]:
    """Keep every existing entry, then append incoming entries with unseen ids."""
    seen = {_id_key(m.get("id")) for m in existing if isinstance(m, dict)}
    merged = list(existing)
    for message in incoming:
        key = _id_key(message.id)
        if key in seen:
            continue
        seen.add(key)
        merged.append(message.to_dict())
    return merged


def get_history_store() -> ChatHistoryFile:
    return ChatHistoryFile(settings.CHAT_HISTORY_FILE)
