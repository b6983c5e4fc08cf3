import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .permissions import RoleRequired

logger = logging.getLogger(__name__)


def _error(code, message, http_status, **extra):
    body = {'ok': False, 'error': {'code': code, 'message': message, **extra}}
    return Response(body, status=http_status)


def _request_context(context) -> dict:
    request = context.get('request')
    view = context.get('view')
    user = getattr(request, 'user', None) if request is not None else None
    authed = bool(user and getattr(user, 'is_authenticated', False))
    return {
        'userId': user.pk if authed else None,
        'role': getattr(user, 'role', None) if authed else None,
        'view': getattr(view, '__class__', type(None)).__name__ if view is not None else None,
        'method': getattr(request, 'method', None),
        'path': getattr(request, 'path', None),
        'query': request.query_params.dict() if hasattr(request, 'query_params') else {},
        'requestId': getattr(request, 'request_id', None),
    }


def api_exception_handler(exc, context):
    """Render every API error as ``{'ok': False, 'error': {'code', 'message', ...}}``."""
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled API error', exc_info=exc, extra={'context': _request_context(context)})
        return _error('server_error', 'Internal server error', status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        fields = resp.data if isinstance(resp.data, dict) else {'non_field_errors': resp.data}
        return _error('validation_error', 'Invalid parameters', resp.status_code, fields=fields)
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        logger.info('unauthenticated request', extra={'context': _request_context(context)})
        return _error('not_authenticated', str(exc.detail), resp.status_code)
    if isinstance(exc, RoleRequired):
        return _error('access_denied', str(exc.detail), resp.status_code, requiredRoles=list(exc.required_roles))
    if isinstance(exc, exceptions.PermissionDenied):
        return _error('access_denied', str(exc.detail), resp.status_code)
    if resp.status_code == status.HTTP_404_NOT_FOUND:
        detail = getattr(exc, 'detail', None) or 'Not found'
        return _error('not_found', str(detail), resp.status_code)
    if isinstance(exc, exceptions.Throttled):
        return _error('rate_limited', 'Too many requests, please try again later', resp.status_code, retryAfter=exc.wait)

    detail = resp.data.get('detail') if isinstance(resp.data, dict) else resp.data
    return _error('api_error', str(detail or exc), resp.status_code)
