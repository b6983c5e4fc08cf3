"""
Session endpoints: register, login, logout and the current user.

The dashboards use the session cookie set here; the same login response
also carries an API token for ``Authorization: Token <key>`` clients.
Failed attempts are logged with the username and client address only.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate, login, logout
from django.db import transaction
from rest_framework import status
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from referrals.models import User
from referrals.serializers.auth import LoginSerializer, RegisterSerializer

logger = logging.getLogger(__name__)


def format_user(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'name': user.display_name,
        'email': user.email,
        'role': user.role,
        'createdAt': user.date_joined.isoformat(),
    }


def _session_payload(request, user: User) -> dict:
    login(request, user, backend='django.contrib.auth.backends.ModelBackend')
    token, _ = Token.objects.get_or_create(user=user)
    return {'ok': True, 'token': token.key, 'user': format_user(user)}


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    with transaction.atomic():
        user = s.save()
    logger.info('user registered', extra={'context': {'userId': user.pk, 'role': user.role}})
    return Response(_session_payload(request, user), status=status.HTTP_201_CREATED)

register_view.cls.throttle_scope = 'register'


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    user = authenticate(request, username=vd['username'], password=vd['password'])
    if user is None:
        logger.warning(
            'login failed',
            extra={'context': {'username': vd['username'], 'ip': request.META.get('REMOTE_ADDR')}},
        )
        return Response(
            {'ok': False, 'error': {'code': 'not_authenticated', 'message': 'Invalid username or password'}},
            status=status.HTTP_401_UNAUTHORIZED,
        )
    logger.info('login ok', extra={'context': {'userId': user.pk, 'ip': request.META.get('REMOTE_ADDR')}})
    return Response(_session_payload(request, user))

# ScopedRateThrottle reads throttle_scope from the view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    Token.objects.filter(user=request.user).delete()
    logout(request)
    return Response({'ok': True})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user(request):
    return Response({'ok': True, 'user': format_user(request.user)})
