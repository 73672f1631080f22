# chat/orchestrator.py
"""
Chat session orchestration.

The session state is a plain value: every operation takes the current
ChatSessionState and returns the next one. Views keep it in the Django
session between requests.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from django.conf import settings

from . import store
from .completion import CompletionClient, CompletionError, get_completion_client
from .documents import ChatMessage, InvalidMessage, Role, now_ms
from .monitoring import ChatSentryMonitor, report_completion_failure

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Sorry, I encountered an error. Please try again."
DEFAULT_TITLE_MAX_CHARS = 50


class EmptyMessage(ValueError):
    pass


class NotAuthenticated(PermissionError):
    pass


@dataclass(frozen=True)
class ChatSessionState:
    conversation_id: Optional[str] = None
    messages: List[ChatMessage] = field(default_factory=list)
    input: str = ""
    awaiting_response: bool = False

    @property
    def phase(self) -> str:
        if self.conversation_id is None:
            return "empty"
        return "awaiting" if self.awaiting_response else "idle"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversationId": self.conversation_id,
            "messages": [m.to_dict() for m in self.messages],
            "input": self.input,
            "awaitingResponse": self.awaiting_response,
            "phase": self.phase,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ChatSessionState":
        if not isinstance(data, dict):
            return cls()
        try:
            messages = [ChatMessage.from_dict(m) for m in data.get("messages") or []]
        except InvalidMessage:
            logger.warning("Discarding unreadable chat session state")
            return cls()
        cid = data.get("conversationId")
        return cls(
            conversation_id=str(cid) if cid else None,
            messages=messages,
            input=str(data.get("input") or ""),
            awaiting_response=bool(data.get("awaitingResponse", False)),
        )


def _title_for(text: str) -> str:
    limit = getattr(settings, "CHAT_TITLE_MAX_CHARS", DEFAULT_TITLE_MAX_CHARS) or DEFAULT_TITLE_MAX_CHARS
    return text[:limit]


class ChatOrchestrator:
    """Runs the send / new chat / select / delete / reveal flows."""

    def __init__(self, completion: Optional[CompletionClient] = None):
        self._completion = completion

    @property
    def completion(self) -> CompletionClient:
        if self._completion is None:
            self._completion = get_completion_client()
        return self._completion

    def send(self, state: ChatSessionState, user_id, text: str) -> ChatSessionState:
        if not isinstance(text, str) or not text.strip():
            raise EmptyMessage("message is empty")
        if not user_id:
            raise NotAuthenticated("no signed-in user")

        conversation_id = state.conversation_id
        if conversation_id is None:
            conversation = store.create_conversation(user_id, _title_for(text))
            conversation_id = str(conversation.id)
            logger.info("Created conversation %s for user %s", conversation_id, user_id)

        ChatSentryMonitor.set_conversation_context(conversation_id, str(user_id))
        state = replace(state, conversation_id=conversation_id, input=text, awaiting_response=True)

        try:
            messages = store.add_message_to_conversation(
                conversation_id, ChatMessage.create(conversation_id, text, Role.USER)
            )
            state = replace(state, messages=messages, input="")

            reply = self.completion.complete(text)
            messages = store.add_message_to_conversation(
                conversation_id, ChatMessage.create(conversation_id, reply, Role.ASSISTANT, animated=False)
            )
            state = replace(state, messages=messages)
        except (CompletionError, store.ConversationNotFound) as exc:
            backend = type(self._completion).__name__ if self._completion else ""
            report_completion_failure(exc, conversation_id, backend)
            state = self._append_apology(state, conversation_id)

        return replace(state, awaiting_response=False)

    def _append_apology(self, state: ChatSessionState, conversation_id: str) -> ChatSessionState:
        apology = ChatMessage.create(conversation_id, APOLOGY_MESSAGE, Role.ASSISTANT, animated=False)
        try:
            messages = store.add_message_to_conversation(conversation_id, apology)
        except store.ConversationNotFound:
            # nothing left to write to; show it once and start over on next send
            logger.warning("Conversation %s vanished, apology not stored", conversation_id)
            return replace(
                state,
                conversation_id=None,
                messages=state.messages + [apology.with_id(str(now_ms()))],
                input="",
            )
        return replace(state, messages=messages, input="")

    def mark_animated(self, state: ChatSessionState, message_id: str) -> ChatSessionState:
        message_id = str(message_id)
        if not any(m.id == message_id for m in state.messages):
            return state
        messages = [m.mark_animated() if m.id == message_id else m for m in state.messages]
        if state.conversation_id:
            store.mark_message_animated(state.conversation_id, message_id)
        return replace(state, messages=messages)

    def new_chat(self, state: ChatSessionState) -> ChatSessionState:
        return ChatSessionState()

    def delete_conversation(self, state: ChatSessionState, conversation_id) -> ChatSessionState:
        conversation_id = str(conversation_id)
        store.delete_conversation(conversation_id)
        logger.info("Deleted conversation %s", conversation_id)
        if state.conversation_id == conversation_id:
            return ChatSessionState()
        return state

    def select_conversation(self, state: ChatSessionState, conversation_id) -> ChatSessionState:
        """Make a stored conversation active. History loads already revealed."""
        conversation = store.get_conversation(conversation_id)
        if conversation is None:
            raise store.ConversationNotFound(conversation_id)
        messages = [m.mark_animated() for m in store.stored_messages(conversation)]
        return ChatSessionState(conversation_id=str(conversation.id), messages=messages)

    def list_conversations(self, user_id):
        if not user_id:
            raise NotAuthenticated("no signed-in user")
        return store.get_user_conversations(user_id)
