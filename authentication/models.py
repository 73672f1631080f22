from django.db import models
import uuid
from django.core.validators import MinLengthValidator
from django.utils import timezone
from datetime import timedelta

MAX_FAILED_LOGINS = 5
LOCKOUT_MINUTES = 30


class User(models.Model):
    user_id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    username = models.CharField(
        max_length=150,
        unique=True
    )
    password = models.CharField(
        max_length=255,
        validators=[MinLengthValidator(8)]
    )
    display_name = models.CharField(
        max_length=150,
        blank=True,
        default=""
    )
    email = models.EmailField(
        unique=True
    )
    last_accessed = models.DateTimeField(
        auto_now=True
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    # Lockout after repeated failed sign-ins
    failed_login_attempts = models.IntegerField(default=0)
    account_locked_until = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = 'username'
    REQUIRED_FIELDS = ['email']

    def __str__(self):
        return self.username

    @property
    def is_authenticated(self):
        """
        A stored user counts as signed in when the account exists, is active
        and is not inside a lockout window.
        """
        if not getattr(self, 'user_id', None):
            return False
        if not getattr(self, 'is_active', True):
            return False
        if self.is_account_locked():
            return False
        if not getattr(self, 'created_at', None):
            return False
        return True

    @property
    def is_anonymous(self):
        return False

    def is_account_locked(self):
        """Check if account is currently locked due to failed login attempts"""
        if not self.account_locked_until:
            return False

        if timezone.now() >= self.account_locked_until:
            # lock expired: clear it
            self.account_locked_until = None
            self.failed_login_attempts = 0
            self.save(update_fields=['account_locked_until', 'failed_login_attempts'])
            return False

        return True

    def increment_failed_login(self):
        """Increment failed login attempts; returns True when this attempt locks the account."""
        self.failed_login_attempts += 1

        if self.failed_login_attempts >= MAX_FAILED_LOGINS:
            self.account_locked_until = timezone.now() + timedelta(minutes=LOCKOUT_MINUTES)
            self.save(update_fields=['failed_login_attempts', 'account_locked_until'])
            return True

        self.save(update_fields=['failed_login_attempts'])
        return False

    def reset_failed_login_attempts(self):
        self.failed_login_attempts = 0
        self.account_locked_until = None
        self.save(update_fields=['failed_login_attempts', 'account_locked_until'])

    def get_remaining_login_attempts(self):
        return max(0, MAX_FAILED_LOGINS - self.failed_login_attempts)
