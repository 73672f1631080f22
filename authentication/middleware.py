from django.contrib.auth.models import AnonymousUser
from django.utils.deprecation import MiddlewareMixin

from authentication.models import User


def resolve_session_user(request):
    """Return the signed-in User for the request's session, or AnonymousUser."""
    session = getattr(request, 'session', None)
    if session is None:
        return AnonymousUser()

    user_id = session.get('user_id')
    username = session.get('username')
    if not (user_id and username):
        return AnonymousUser()

    user = User.objects.filter(user_id=user_id, username=username).first()
    if user is None or not user.is_authenticated:
        return AnonymousUser()
    return user


class SessionAuthenticationMiddleware(MiddlewareMixin):
    """
    Sets request.user from the session keys written at sign-in, so both plain
    Django views and DRF views see the project's User model.
    """
    def process_request(self, request):
        request.user = resolve_session_user(request)
