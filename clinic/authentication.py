"""
JWT authentication from either the ``Authorization`` header or the
HTTP-only session cookie set at login.

Kept separate from the auth views so DRF can import the class from
settings without pulling in view modules.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework import exceptions
from rest_framework.authentication import CSRFCheck
from rest_framework_simplejwt.authentication import JWTAuthentication


class CookieJWTAuthentication(JWTAuthentication):
    """Bearer header first, then the access cookie.

    A token read from the cookie is sent by the browser on its own, so
    unsafe requests authenticated that way must pass Django's CSRF check,
    as with DRF's ``SessionAuthentication``.
    """

    def authenticate(self, request):
        header = self.get_header(request)
        if header is not None:
            raw_token = self.get_raw_token(header)
            from_cookie = False
        else:
            raw_token = request.COOKIES.get(settings.AUTH_COOKIE_NAME)
            from_cookie = True
        if not raw_token:
            return None
        if isinstance(raw_token, str):
            raw_token = raw_token.encode()
        validated = self.get_validated_token(raw_token)
        user = self.get_user(validated)
        if from_cookie:
            self.enforce_csrf(request)
        return user, validated

    def enforce_csrf(self, request):
        def dummy_get_response(request):
            return None

        check = CSRFCheck(dummy_get_response)
        check.process_request(request)
        reason = check.process_view(request, None, (), {})
        if reason:
            raise exceptions.PermissionDenied(f'CSRF Failed: {reason}')

    def authenticate_header(self, request):
        # no challenge: unauthenticated requests are answered with 403
        return None
