# authentication/forms.py
from django import forms
from django.contrib.auth.hashers import check_password

from authentication.errors import AuthError, AuthErrorKind
from authentication.models import User
from authentication.validators import (
    normalize_email,
    validate_display_name,
    validate_new_email,
    validate_password,
    validate_username,
)


class LoginForm(forms.Form):
    """Sign in with either an email address or a username."""

    email = forms.CharField(max_length=254, strip=True, required=False)
    username = forms.CharField(max_length=150, strip=True, required=False)
    password = forms.CharField(
        max_length=255,
        strip=True,
        required=True,
        error_messages={
            'required': 'Password is required.',
            'max_length': 'Password must be 255 characters or less.'
        }
    )

    def clean(self):
        cleaned = super().clean()
        if not cleaned.get('email') and not cleaned.get('username'):
            raise forms.ValidationError("Email or username is required.")
        return cleaned

    def lookup_user(self):
        """
        Find the account named by the form. Raises AuthError(INVALID_EMAIL)
        for a malformed address and AuthError(USER_NOT_FOUND) for no match.
        """
        email = self.cleaned_data.get('email')
        if email:
            try:
                email = normalize_email(email)
            except forms.ValidationError:
                raise AuthError(AuthErrorKind.INVALID_EMAIL)
            user = User.objects.filter(email=email).first()
        else:
            user = User.objects.filter(username=self.cleaned_data['username']).first()
        if user is None:
            raise AuthError(AuthErrorKind.USER_NOT_FOUND)
        return user

    def password_matches(self, user) -> bool:
        return check_password(self.cleaned_data['password'], user.password)


class RegistrationForm(forms.Form):
    username = forms.CharField(
        max_length=150,
        strip=True,
        required=True,
        error_messages={
            'required': 'Username is required.',
            'max_length': 'Username must be 150 characters or less.'
        }
    )
    password = forms.CharField(
        max_length=255,
        strip=True,
        required=True,
        error_messages={
            'required': 'Password is required.',
            'max_length': 'Password must be 255 characters or less.'
        }
    )
    confirm_password = forms.CharField(
        max_length=255,
        strip=True,
        required=True,
        error_messages={
            'required': 'Password confirmation is required.',
            'max_length': 'Password must be 255 characters or less.'
        }
    )
    display_name = forms.CharField(max_length=150, strip=True, required=False)
    email = forms.CharField(
        max_length=254,
        strip=True,
        required=True,
        error_messages={'required': 'Email is required.'}
    )

    def clean_username(self):
        username = validate_username(self.cleaned_data.get('username'))
        if User.objects.filter(username=username).exists():
            raise forms.ValidationError("This username is already taken.")
        return username

    def clean_password(self):
        return validate_password(self.cleaned_data.get('password'))

    def clean_display_name(self):
        return validate_display_name(self.cleaned_data.get('display_name'))

    def clean_email(self):
        return validate_new_email(self.cleaned_data.get('email'), User)

    def clean(self):
        cleaned_data = super().clean()
        password = cleaned_data.get('password')
        confirm_password = cleaned_data.get('confirm_password')
        if password and confirm_password and password != confirm_password:
            raise forms.ValidationError("Passwords do not match.")
        return cleaned_data
