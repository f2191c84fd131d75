import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class InvalidTransition(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'


def _error(code: str, message, http_status: int, fields=None) -> Response:
    body = {'ok': False, 'error': {'code': code, 'message': message}}
    if fields is not None:
        body['error']['fields'] = fields
    return Response(body, status=http_status)


def api_exception_handler(exc, context):
    if isinstance(exc, DjangoValidationError):
        exc = exceptions.ValidationError(getattr(exc, 'message_dict', None) or exc.messages)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.error('Unhandled API error on %s', getattr(request, 'path', '?'), exc_info=exc)
        return _error('server_error', 'Internal server error', status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.ValidationError):
        fields = resp.data if isinstance(resp.data, dict) else {'non_field_errors': resp.data}
        return _error('validation_error', 'Validation failed', resp.status_code, fields=fields)
    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        code = 'not_authenticated'
    elif isinstance(exc, exceptions.PermissionDenied):
        code = 'forbidden'
    elif isinstance(exc, exceptions.NotFound):
        code = 'not_found'
    elif isinstance(exc, exceptions.APIException):
        code = exc.default_code
    else:
        # Http404 / django PermissionDenied converted by DRF
        code = 'not_found' if resp.status_code == 404 else 'forbidden'

    detail = resp.data.get('detail') if isinstance(resp.data, dict) else resp.data
    return _error(code, str(detail) if detail is not None else '', resp.status_code)
