import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing
from django.utils.crypto import constant_time_compare
from rest_framework import exceptions
from rest_framework.authentication import BaseAuthentication

logger = logging.getLogger(__name__)

TOKEN_SALT = "apps.users.token"


def make_token(user) -> str:
    # the session hash changes with the password, which invalidates old cookies
    return signing.dumps({"uid": str(user.pk), "h": user.get_session_auth_hash()}, salt=TOKEN_SALT)


def read_token(token):
    """Return the user a token belongs to, or raise AuthenticationFailed."""
    try:
        data = signing.loads(token, salt=TOKEN_SALT, max_age=settings.AUTH_TOKEN_MAX_AGE)
    except signing.SignatureExpired:
        raise exceptions.AuthenticationFailed("Token expired")
    except signing.BadSignature:
        raise exceptions.AuthenticationFailed("Invalid token format")

    user = (get_user_model().objects
            .select_related("preference")
            .filter(pk=data.get("uid"))
            .first())
    if user is None or not constant_time_compare(data.get("h", ""), user.get_session_auth_hash()):
        logger.warning(f"rejected token for user {data.get('uid')}")
        raise exceptions.AuthenticationFailed("Invalid credentials in token")
    return user


def set_token_cookie(response, user):
    response.set_cookie(
        settings.AUTH_TOKEN_COOKIE,
        make_token(user),
        max_age=settings.AUTH_TOKEN_MAX_AGE,
        httponly=True,
        samesite="Lax",
        secure=not settings.DEBUG,
    )


class CookieTokenAuthentication(BaseAuthentication):
    def authenticate(self, request):
        token = request.COOKIES.get(settings.AUTH_TOKEN_COOKIE)
        if not token:
            return None
        return read_token(token), token

    def authenticate_header(self, request):
        return "Cookie"
