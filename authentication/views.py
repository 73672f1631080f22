from django.db import transaction, IntegrityError
from django.contrib.auth.hashers import make_password
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.shortcuts import redirect, render
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .errors import AuthError, AuthErrorKind
from .forms import LoginForm, RegistrationForm
from .gate import SessionState, resolve_session_state
from authentication.models import User
from authentication.helpers import parse_json_body, first_form_errors, set_user_session, user_payload

import logging

logger = logging.getLogger(__name__)


@require_GET
def csrf(request):
    # sets 'csrftoken' cookie and also returns it in JSON
    return JsonResponse({"csrfToken": get_token(request)})


DEFAULT_NEXT_URL = "/chat/"


def _safe_next(request) -> str:
    """The ?next= target when it stays on this host, else the chat page."""
    target = request.GET.get("next")
    if target and url_has_allowed_host_and_scheme(
        target, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return target
    return DEFAULT_NEXT_URL


@require_GET
def sign_in_page(request):
    next_url = _safe_next(request)
    if resolve_session_state(request) is SessionState.AUTHENTICATED:
        return redirect(next_url)
    return render(request, "authentication/sign_in.html", {"next": next_url})


@csrf_exempt
@require_POST
def register(request):
    data, error = parse_json_body(request)
    if error:
        return error

    form = RegistrationForm(data)
    if not form.is_valid():
        return JsonResponse({"errors": first_form_errors(form)}, status=400)

    try:
        with transaction.atomic():
            user = User.objects.create(
                username=form.cleaned_data['username'],
                password=make_password(form.cleaned_data['password']),
                display_name=form.cleaned_data.get('display_name') or form.cleaned_data['username'],
                email=form.cleaned_data['email'],
            )
    except IntegrityError:
        return JsonResponse({"error": "user already exists"}, status=409)

    logger.info("Registered user %s", user.username)
    return JsonResponse({**user_payload(user), "message": "Registration successful"}, status=201)


def _authenticate(form: LoginForm) -> User:
    """Return the user for valid credentials or raise AuthError."""
    user = form.lookup_user()

    if not user.is_active:
        raise AuthError(AuthErrorKind.USER_DISABLED)
    if user.is_account_locked():
        raise AuthError(AuthErrorKind.ACCOUNT_LOCKED)

    if not form.password_matches(user):
        if user.increment_failed_login():
            raise AuthError(AuthErrorKind.ACCOUNT_LOCKED)
        raise AuthError(AuthErrorKind.WRONG_PASSWORD, remaining_attempts=user.get_remaining_login_attempts())

    user.reset_failed_login_attempts()
    return user


@csrf_exempt
@require_POST
def login(request):
    data, error = parse_json_body(request)
    if error:
        return error

    form = LoginForm(data)
    if not form.is_valid():
        errors = first_form_errors(form)
        return JsonResponse({"error": next(iter(errors.values())), "errors": errors}, status=400)

    try:
        user = _authenticate(form)
    except AuthError as exc:
        logger.info("Sign-in rejected: %s", exc.kind.value)
        return exc.to_response()

    set_user_session(request, user)
    return JsonResponse({**user_payload(user), "message": "Login successful"}, status=200)


@csrf_exempt
@require_POST
def logout(request):
    request.session.flush()
    return JsonResponse({'message': 'Logged out'}, status=200)


@require_GET
def session_status(request):
    state = resolve_session_state(request)
    body = {"state": state.value}
    if state is SessionState.AUTHENTICATED:
        body["user"] = user_payload(request.user)
    return JsonResponse(body, status=200)
