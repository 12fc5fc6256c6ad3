from typing import Optional, TypeVar

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser
from rest_framework import HTTP_HEADER_ENCODING
from rest_framework.request import Request

from rest_framework_simplejwt.models import TokenUser
from rest_framework_simplejwt.tokens import Token
from rest_framework_simplejwt.authentication import JWTAuthentication as original_auth

AuthUser = TypeVar("AuthUser", AbstractBaseUser, TokenUser)


class JWTAuthentication(original_auth):
    """
    JWT authentication that reads the access token from the auth cookie.

    Requests without the cookie fall back to the ``Authorization: Bearer``
    header, which server-to-server callers use.
    """

    www_authenticate_realm = "api"
    media_type = "application/json"

    def authenticate(self, request: Request) -> Optional[tuple[AuthUser, Token]]:
        cookie_name = getattr(settings, "JWT_AUTH_COOKIE", "access_token")
        cookie = request.COOKIES.get(cookie_name) or None
        if cookie is None:
            return super().authenticate(request)

        raw_token = cookie.encode(HTTP_HEADER_ENCODING)
        validated_token = self.get_validated_token(raw_token)

        return self.get_user(validated_token), validated_token
