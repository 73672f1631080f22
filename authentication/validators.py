import re

from django import forms
from django.core.exceptions import ValidationError
from django.core.validators import validate_email as django_validate_email

USERNAME_RE = re.compile(r'^[a-zA-Z0-9_.-]+$')


def validate_username(username: str):
    if not username or not username.strip():
        raise forms.ValidationError("Username cannot be empty.")

    username = username.strip()
    if len(username) < 3:
        raise forms.ValidationError("Username must be at least 3 characters long.")
    if not USERNAME_RE.match(username):
        raise forms.ValidationError("Username can only contain letters, numbers, dots, hyphens, and underscores.")
    if username.isdigit():
        raise forms.ValidationError("Username cannot be entirely numeric.")
    if username.startswith(('.', '_')) or username.endswith(('.', '_')):
        raise forms.ValidationError("Username cannot start or end with a dot or underscore.")

    return username


def validate_password(password: str):
    if not password:
        raise forms.ValidationError("Password cannot be empty.")
    if len(password) < 8:
        raise forms.ValidationError("Password must be at least 8 characters long.")
    if not re.search(r'[A-Z]', password):
        raise forms.ValidationError("Password must contain at least one uppercase letter.")
    if not re.search(r'[a-z]', password):
        raise forms.ValidationError("Password must contain at least one lowercase letter.")
    if not re.search(r'\d', password):
        raise forms.ValidationError("Password must contain at least one number.")

    return password


def validate_display_name(display_name: str):
    display_name = (display_name or "").strip()
    if re.search(r'[<>"/\\]', display_name):
        raise forms.ValidationError('Display name cannot contain <, >, ", /, or \\ characters.')
    return display_name


def normalize_email(email: str) -> str:
    """Lower-case and syntax-check an address; raises forms.ValidationError."""
    if not email or not email.strip():
        raise forms.ValidationError("Email is required.")
    email = email.lower().strip()
    try:
        django_validate_email(email)
    except ValidationError:
        raise forms.ValidationError("Please enter a valid email address.")
    return email


def validate_new_email(email: str, model_cls):
    email = normalize_email(email)
    if model_cls.objects.filter(email=email).exists():
        raise forms.ValidationError("This email is already registered.")
    return email
