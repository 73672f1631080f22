"""
Sentry hooks for the chat flow.

sentry_sdk calls are no-ops until settings initialise the SDK (SENTRY_DSN).
"""
import logging
import time
from typing import Dict, Optional

import sentry_sdk
from sentry_sdk import capture_exception

logger = logging.getLogger(__name__)

MODULE = "chat"


class ChatSentryMonitor:
    """Breadcrumbs and error capture around completion calls."""

    @staticmethod
    def add_breadcrumb(message: str, category: str = MODULE, level: str = "info", data: Optional[Dict] = None):
        sentry_sdk.add_breadcrumb(category=category, message=message, level=level, data=data or {})

    @staticmethod
    def set_conversation_context(conversation_id: Optional[str], user_id: Optional[str]):
        sentry_sdk.set_context("chat_context", {
            "module": MODULE,
            "conversation_id": conversation_id,
            "user_id": user_id,
            "timestamp": time.time(),
        })
        sentry_sdk.set_tag("module", MODULE)


def report_completion_failure(exc: Exception, conversation_id: Optional[str] = None, backend: str = ""):
    """Record a failed completion. The caller still answers with the apology."""
    logger.warning("completion_failed conversation=%s backend=%s err=%s", conversation_id, backend, exc)
    sentry_sdk.set_context("error_context", {
        "operation": "completion",
        "backend": backend,
        "conversation_id": conversation_id,
        "error_message": str(exc),
    })
    ChatSentryMonitor.add_breadcrumb(
        f"Completion failed: {type(exc).__name__}",
        category=f"{MODULE}.completion",
        level="error",
    )
    capture_exception(exc)
