# chat/store.py
"""
Conversation persistence.

Each conversation is one row holding its messages as an embedded array.
Appends are read-modify-write of the whole array with no version check:
two concurrent appends to the same conversation race and the later write
wins.
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from django.db import DatabaseError
from django.utils import timezone

from .documents import ChatMessage, now_ms
from .models import Conversation

log = logging.getLogger(__name__)


class ConversationNotFound(LookupError):
    def __init__(self, conversation_id):
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = str(conversation_id)


def _parse_id(value) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def stored_messages(conversation: Conversation) -> List[ChatMessage]:
    return [ChatMessage.from_dict(m) for m in (conversation.messages or [])]


def _next_message_id(existing: List[ChatMessage]) -> str:
    # time-derived; bumped so two appends in the same millisecond stay distinct
    taken = {m.id for m in existing}
    candidate = now_ms()
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def create_conversation(user_id, title: str) -> Conversation:
    return Conversation.objects.create(user_id=user_id, title=title or "", messages=[])


def get_user_conversations(user_id) -> List[Conversation]:
    return list(Conversation.objects.filter(user_id=user_id).order_by("-updated_at"))


def get_conversation(conversation_id) -> Optional[Conversation]:
    cid = _parse_id(conversation_id)
    if cid is None:
        return None
    return Conversation.objects.filter(pk=cid).first()


def add_message_to_conversation(conversation_id, message: ChatMessage) -> List[ChatMessage]:
    """
    Append `message` (with a fresh time-derived id) and return the full new
    sequence. Raises ConversationNotFound when the conversation is gone.
    """
    conversation = get_conversation(conversation_id)
    if conversation is None:
        raise ConversationNotFound(conversation_id)

    current = stored_messages(conversation)
    updated = current + [message.with_id(_next_message_id(current))]

    conversation.messages = [m.to_dict() for m in updated]
    conversation.save(update_fields=["messages", "updated_at"])
    return updated


def delete_conversation(conversation_id) -> None:
    cid = _parse_id(conversation_id)
    if cid is None:
        return
    Conversation.objects.filter(pk=cid).delete()


def update_conversation_title(conversation_id, title: str) -> None:
    cid = _parse_id(conversation_id)
    updated = 0
    if cid is not None:
        updated = Conversation.objects.filter(pk=cid).update(title=title, updated_at=timezone.now())
    if not updated:
        raise ConversationNotFound(conversation_id)


def mark_message_animated(conversation_id, message_id: str) -> bool:
    """
    Best-effort: persist animated=True for one message. Returns True when a
    stored message changed. Missing rows and write failures are logged only.
    """
    conversation = get_conversation(conversation_id)
    if conversation is None:
        return False

    changed = False
    messages = []
    for raw in conversation.messages or []:
        if isinstance(raw, dict) and str(raw.get("id")) == str(message_id) and not raw.get("animated"):
            raw = {**raw, "animated": True}
            changed = True
        messages.append(raw)
    if not changed:
        return False

    try:
        # updated_at stays put: the flag is display state, not a new message
        Conversation.objects.filter(pk=conversation.pk).update(messages=messages)
    except DatabaseError:
        log.warning("mark_animated_failed conversation=%s message=%s", conversation_id, message_id, exc_info=True)
        return False
    return True
