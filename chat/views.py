# chat/views.py
import logging

from django.db import DatabaseError
from django.shortcuts import render
from django.views.decorators.csrf import ensure_csrf_cookie
from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from authentication.gate import protected_view
from . import store
from .completion import CompletionError, get_completion_client
from .monitoring import report_completion_failure
from .orchestrator import ChatOrchestrator, ChatSessionState, EmptyMessage
from .serializers import (
    ConversationSerializer,
    ConversationSummarySerializer,
    SendSerializer,
    TitleSerializer,
)

log = logging.getLogger(__name__)

SESSION_KEY = "chat_state"


def _orchestrator() -> ChatOrchestrator:
    return ChatOrchestrator()


def _user_id(request) -> str:
    return str(request.user.user_id)


def _load_state(request) -> ChatSessionState:
    return ChatSessionState.from_dict(request.session.get(SESSION_KEY))


def _save_state(request, state: ChatSessionState) -> ChatSessionState:
    request.session[SESSION_KEY] = state.to_dict()
    return state


def _owned_conversation(request, conversation_id):
    """The caller's conversation, or None (missing and foreign look the same)."""
    conversation = store.get_conversation(conversation_id)
    if conversation is None or str(conversation.user_id) != _user_id(request):
        return None
    return conversation


def _not_found():
    return Response({"error": "conversation not found"}, status=status.HTTP_404_NOT_FOUND)


@protected_view
@ensure_csrf_cookie
def chat_home(request):
    return render(request, "chat/index.html", {"user": request.user})


@api_view(["GET"])
def session_state(request):
    return Response(_load_state(request).to_dict(), status=200)


@api_view(["POST"])
def send(request):
    ser = SendSerializer(data=request.data)
    if not ser.is_valid():
        return Response({"error": "empty message"}, status=400)

    state = _load_state(request)
    try:
        state = _orchestrator().send(state, _user_id(request), ser.validated_data["message"])
    except EmptyMessage:
        return Response({"error": "empty message"}, status=400)
    except DatabaseError:
        log.exception("send_failed user=%s", _user_id(request))
        return Response({"error": "Failed to send message"}, status=500)

    _save_state(request, state)
    return Response(state.to_dict(), status=200)


@api_view(["POST"])
def new_chat(request):
    state = _save_state(request, _orchestrator().new_chat(_load_state(request)))
    return Response(state.to_dict(), status=200)


@api_view(["GET"])
def conversations(request):
    try:
        items = _orchestrator().list_conversations(_user_id(request))
    except DatabaseError:
        log.exception("list_conversations_failed user=%s", _user_id(request))
        return Response({"error": "Failed to load conversations"}, status=500)
    return Response({"conversations": ConversationSummarySerializer(items, many=True).data}, status=200)


@api_view(["GET", "PATCH", "DELETE"])
def conversation_detail(request, conversation_id):
    conversation = _owned_conversation(request, conversation_id)
    if conversation is None:
        return _not_found()

    if request.method == "GET":
        return Response(ConversationSerializer(conversation).data, status=200)

    if request.method == "PATCH":
        ser = TitleSerializer(data=request.data)
        if not ser.is_valid():
            return Response({"errors": ser.errors}, status=400)
        try:
            store.update_conversation_title(conversation.id, ser.validated_data["title"])
        except store.ConversationNotFound:
            return _not_found()
        conversation.refresh_from_db()
        return Response(ConversationSerializer(conversation).data, status=200)

    state = _orchestrator().delete_conversation(_load_state(request), conversation.id)
    _save_state(request, state)
    return Response({"ok": True, "state": state.to_dict()}, status=200)


@api_view(["POST"])
def select(request, conversation_id):
    if _owned_conversation(request, conversation_id) is None:
        return _not_found()
    try:
        state = _orchestrator().select_conversation(_load_state(request), conversation_id)
    except store.ConversationNotFound:
        return _not_found()
    _save_state(request, state)
    return Response(state.to_dict(), status=200)


@api_view(["POST"])
def message_animated(request, message_id):
    state = _save_state(request, _orchestrator().mark_animated(_load_state(request), message_id))
    return Response(state.to_dict(), status=200)


@api_view(["POST"])
def completion(request):
    data = request.data if isinstance(request.data, dict) else {}
    message = data.get("message")
    if not isinstance(message, str) or not message.strip():
        return Response({"error": "message is required"}, status=400)

    client = get_completion_client()
    try:
        reply = client.complete(message)
    except CompletionError as exc:
        report_completion_failure(exc, backend=type(client).__name__)
        return Response({"error": "Failed to get AI response"}, status=502)
    return Response({"response": reply}, status=200)
