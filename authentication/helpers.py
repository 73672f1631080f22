import json
from django.http import JsonResponse


def parse_json_body(request):
    raw = request.body or b''
    if not raw.strip():
        return {}, None
    try:
        data = json.loads(raw.decode('utf-8'))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None, JsonResponse({"error": "invalid payload"}, status=400)
    if not isinstance(data, dict):
        return None, JsonResponse({"error": "invalid payload"}, status=400)
    return data, None


def first_form_errors(form) -> dict:
    return {field: str(errors[0]) for field, errors in form.errors.items()}


def set_user_session(request, user):
    request.session.cycle_key()
    request.session['user_id'] = str(user.user_id)
    request.session['username'] = user.username


def user_payload(user) -> dict:
    return {
        "user_id": str(user.user_id),
        "username": user.username,
        "display_name": user.display_name,
        "email": user.email,
    }
