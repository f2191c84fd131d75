"""
Account and session endpoints.

Login issues a simplejwt access/refresh pair and stores both in HTTP-only
cookies (the tokens are echoed in the body for non-browser clients).
The login, register and refresh endpoints run without authentication
classes so a stale cookie never blocks them.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction
from django.middleware.csrf import get_token
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from clinic import roles
from clinic.models import User
from clinic.permissions import require_access
from clinic.serializers.auth import LoginSerializer, RegisterSerializer
from clinic.serializers.output import user_dict
from clinic.services.audit import log_action
from clinic.services.identity import own_profile
from clinic.throttling import LoginRateThrottle, RegisterRateThrottle

logger = logging.getLogger(__name__)


def _set_cookie(response: Response, name: str, value: str, max_age) -> None:
    response.set_cookie(
        name,
        value,
        max_age=int(max_age.total_seconds()),
        httponly=True,
        secure=settings.AUTH_COOKIE_SECURE,
        samesite=settings.AUTH_COOKIE_SAMESITE,
        path='/',
    )


def _clear_cookies(response: Response) -> None:
    for name in (settings.AUTH_COOKIE_NAME, settings.AUTH_REFRESH_COOKIE_NAME):
        response.delete_cookie(name, path='/', samesite=settings.AUTH_COOKIE_SAMESITE)


def _session_payload(user: User) -> dict:
    ref = own_profile(user)
    return {
        'user': user_dict(user),
        'profile': ref.as_dict() if ref else None,
        'navigation': roles.menu_for(user.role),
    }


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([RegisterRateThrottle])
def register(request):
    """Self-service signup.  Always creates a patient account."""
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data

    if User.objects.filter(email__iexact=v['email']).exists():
        raise ValidationError({'email': ['User with this email already exists']})
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=v['email'],
                password=v['password'],
                first_name=v['firstName'],
                last_name=v['lastName'],
                phone=v.get('phone', ''),
                role=roles.PATIENT,
            )
    except IntegrityError:
        # lost a race with a concurrent signup for the same address
        raise ValidationError({'email': ['User with this email already exists']})

    log_action(request, user=user, action='CREATE', entity='User', entity_id=user.id,
               description=f'New patient account registered: {user.email}')
    return Response({'ok': True, 'user': user_dict(user)}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@throttle_classes([LoginRateThrottle])
def login(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']

    user = authenticate(request, email=email, password=s.validated_data['password'])
    if user is None:
        logger.warning('Failed login for %s from %s', email, request.META.get('REMOTE_ADDR'))
        raise AuthenticationFailed('Invalid email or password')

    refresh = RefreshToken.for_user(user)
    access = refresh.access_token
    resp = Response({
        'ok': True,
        'access': str(access),
        'refresh': str(refresh),
        # echo of the csrftoken cookie; unsafe cookie-authenticated requests send it as X-CSRFToken
        'csrfToken': get_token(request),
        **_session_payload(user),
    })
    _set_cookie(resp, settings.AUTH_COOKIE_NAME, str(access), settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'])
    _set_cookie(resp, settings.AUTH_REFRESH_COOKIE_NAME, str(refresh), settings.SIMPLE_JWT['REFRESH_TOKEN_LIFETIME'])

    log_action(request, user=user, action='LOGIN', entity='User', entity_id=user.id,
               description=f'User logged in: {user.email}')
    return resp


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def refresh(request):
    """Mint a new access token from the refresh cookie (or ``refresh`` in the body)."""
    raw = request.data.get('refresh') or request.COOKIES.get(settings.AUTH_REFRESH_COOKIE_NAME)
    if not raw:
        raise AuthenticationFailed('Refresh token missing')
    try:
        token = RefreshToken(raw)
    except TokenError as e:
        raise AuthenticationFailed(str(e))
    access = token.access_token
    resp = Response({'ok': True, 'access': str(access)})
    _set_cookie(resp, settings.AUTH_COOKIE_NAME, str(access), settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'])
    return resp


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout(request):
    """Blacklist the refresh token and clear both cookies."""
    user = require_access(request, 'session')
    raw = request.data.get('refresh') or request.COOKIES.get(settings.AUTH_REFRESH_COOKIE_NAME)
    blacklisted = False
    if raw:
        try:
            RefreshToken(raw).blacklist()
            blacklisted = True
        except TokenError:
            # already expired or blacklisted; the cookies are cleared regardless
            pass
    resp = Response({'ok': True, 'blacklisted': blacklisted})
    _clear_cookies(resp)
    log_action(request, action='LOGOUT', entity='User', entity_id=user.id,
               description=f'User logged out: {user.email}')
    return resp


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session(request):
    user = require_access(request, 'session')
    return Response({'ok': True, **_session_payload(user)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def navigation(request):
    user = require_access(request, 'navigation')
    return Response({'ok': True, 'role': user.role, 'items': roles.menu_for(user.role)})
