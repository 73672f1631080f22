# chat/completion.py
"""Completion backends: turn the raw user text into a reply string."""
from __future__ import annotations

import logging
from typing import Optional, Protocol

import requests
from django.conf import settings

from . import llm

logger = logging.getLogger(__name__)


class CompletionError(RuntimeError):
    """The backend failed, rejected the request, or answered without a reply."""


class CompletionClient(Protocol):
    def complete(self, text: str) -> str:
        ...


class GeminiCompletionClient:
    """In-process adapter over chat.llm."""

    def complete(self, text: str) -> str:
        try:
            return llm.ask_gemini(text)
        except llm.GeminiError as e:
            raise CompletionError(str(e)) from e


class HttpCompletionClient:
    """POSTs {"message": text} and expects {"response": "..."} back."""

    def __init__(self, url: str, timeout_s: Optional[float] = None, session=None):
        if not url:
            raise CompletionError("COMPLETION_URL missing")
        self.url = url
        self.timeout_s = timeout_s
        self._http = session or requests

    def complete(self, text: str) -> str:
        try:
            resp = self._http.post(self.url, json={"message": text}, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise CompletionError(f"request_failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not 200 <= resp.status_code < 300:
            detail = body.get("error") if isinstance(body, dict) else None
            raise CompletionError(f"status={resp.status_code} {detail or ''}".strip())
        if not isinstance(body, dict):
            raise CompletionError("invalid_body")
        if body.get("error"):
            raise CompletionError(str(body["error"]))

        reply = body.get("response")
        if not isinstance(reply, str):
            raise CompletionError("missing_response")
        return reply


def get_completion_client() -> CompletionClient:
    backend = (getattr(settings, "CHAT_COMPLETION_BACKEND", "gemini") or "gemini").lower()
    if backend == "http":
        return HttpCompletionClient(
            getattr(settings, "COMPLETION_URL", ""),
            timeout_s=getattr(settings, "COMPLETION_TIMEOUT_S", None),
        )
    if backend != "gemini":
        logger.warning("Unknown CHAT_COMPLETION_BACKEND %r, using gemini", backend)
    return GeminiCompletionClient()
