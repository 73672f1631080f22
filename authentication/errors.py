"""
Sign-in error kinds and the user-facing message for each.

``AuthErrorKind`` is closed; a kind without a table entry gets the fallback
message and a 400.
"""
from __future__ import annotations

from enum import Enum

from django.http import JsonResponse


class AuthErrorKind(str, Enum):
    INVALID_EMAIL = "invalid_email"
    USER_DISABLED = "user_disabled"
    USER_NOT_FOUND = "user_not_found"
    WRONG_PASSWORD = "wrong_password"
    INVALID_CREDENTIAL = "invalid_credential"
    NETWORK_REQUEST_FAILED = "network_request_failed"
    POPUP_CLOSED_BY_USER = "popup_closed_by_user"
    UNAUTHORIZED_DOMAIN = "unauthorized_domain"
    ACCOUNT_LOCKED = "account_locked"
    UNKNOWN = "unknown"


DEFAULT_AUTH_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

AUTH_ERROR_MESSAGES = {
    AuthErrorKind.INVALID_EMAIL: "Invalid email address",
    AuthErrorKind.USER_DISABLED: "This account has been disabled",
    AuthErrorKind.USER_NOT_FOUND: "Invalid email or password",
    AuthErrorKind.WRONG_PASSWORD: "Invalid email or password",
    AuthErrorKind.INVALID_CREDENTIAL: "Invalid email or password",
    AuthErrorKind.NETWORK_REQUEST_FAILED: "Network error. Please check your connection",
    AuthErrorKind.POPUP_CLOSED_BY_USER: "Google sign-in was cancelled",
    AuthErrorKind.UNAUTHORIZED_DOMAIN: "This domain is not authorized for sign-in",
    AuthErrorKind.ACCOUNT_LOCKED: "Account temporarily locked. Please try again later.",
}

AUTH_ERROR_STATUS = {
    AuthErrorKind.INVALID_EMAIL: 400,
    AuthErrorKind.USER_DISABLED: 403,
    AuthErrorKind.USER_NOT_FOUND: 401,
    AuthErrorKind.WRONG_PASSWORD: 401,
    AuthErrorKind.INVALID_CREDENTIAL: 401,
    AuthErrorKind.NETWORK_REQUEST_FAILED: 503,
    AuthErrorKind.POPUP_CLOSED_BY_USER: 400,
    AuthErrorKind.UNAUTHORIZED_DOMAIN: 403,
    AuthErrorKind.ACCOUNT_LOCKED: 423,
}


def message_for(kind: AuthErrorKind) -> str:
    return AUTH_ERROR_MESSAGES.get(kind, DEFAULT_AUTH_ERROR_MESSAGE)


def status_for(kind: AuthErrorKind) -> int:
    return AUTH_ERROR_STATUS.get(kind, 400)


class AuthError(Exception):
    def __init__(self, kind: AuthErrorKind, remaining_attempts: int | None = None):
        super().__init__(kind.value)
        self.kind = kind
        self.remaining_attempts = remaining_attempts

    @property
    def message(self) -> str:
        return message_for(self.kind)

    @property
    def status(self) -> int:
        return status_for(self.kind)

    def to_response(self) -> JsonResponse:
        body = {"error": self.message, "code": self.kind.value}
        if self.remaining_attempts is not None:
            body["remaining_attempts"] = self.remaining_attempts
        return JsonResponse(body, status=self.status)
