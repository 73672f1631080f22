"""
Session gate for protected views.

A request is ``loading`` until the session middleware has resolved its user,
then either ``authenticated`` or ``unauthenticated``. Page views redirect the
unauthenticated case to LOGIN_URL; API views answer 401.
"""
from __future__ import annotations

import functools
from enum import Enum

from django.conf import settings
from django.contrib.auth.views import redirect_to_login
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication, CSRFCheck
from rest_framework.permissions import BasePermission

from authentication.middleware import resolve_session_user


class SessionState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


def _resolved_user(request):
    # DRF wraps the Django request; the middleware writes to the inner one
    inner = getattr(request, "_request", request)
    return getattr(inner, "user", None)


def session_state(request) -> SessionState:
    user = _resolved_user(request)
    if user is None:
        return SessionState.LOADING
    if getattr(user, "is_authenticated", False):
        return SessionState.AUTHENTICATED
    return SessionState.UNAUTHENTICATED


def resolve_session_state(request) -> SessionState:
    """Like session_state(), but resolves a still-loading request first."""
    state = session_state(request)
    if state is SessionState.LOADING:
        inner = getattr(request, "_request", request)
        inner.user = resolve_session_user(inner)
        state = session_state(request)
    return state


def protected_view(view_func):
    """Render the view for signed-in users; redirect everyone else to sign-in."""
    @functools.wraps(view_func)
    def _wrapped(request, *args, **kwargs):
        if resolve_session_state(request) is SessionState.AUTHENTICATED:
            return view_func(request, *args, **kwargs)
        return redirect_to_login(request.get_full_path(), settings.LOGIN_URL)
    return _wrapped


class SessionUserAuthentication(BaseAuthentication):
    """DRF authentication backed by SessionAuthenticationMiddleware."""

    def authenticate(self, request):
        resolve_session_state(request)
        user = _resolved_user(request)
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        self.enforce_csrf(request)
        return (user, None)

    def enforce_csrf(self, request):
        """Cookie-authenticated writes must carry the CSRF token."""
        def dummy_get_response(request):  # pragma: no cover
            return None

        check = CSRFCheck(dummy_get_response)
        # populates request.META["CSRF_COOKIE"] for process_view
        check.process_request(request)
        reason = check.process_view(request, None, (), {})
        if reason:
            raise exceptions.PermissionDenied(f"CSRF Failed: {reason}")

    def authenticate_header(self, request):
        # a challenge value makes DRF answer 401 instead of 403
        return 'Session realm="api"'


class IsSessionAuthenticated(BasePermission):
    message = "unauthorized"

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        return bool(user and getattr(user, "is_authenticated", False))
