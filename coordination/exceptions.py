import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class Conflict(APIException):
    """The matching request was already resolved by someone else."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'matching request is no longer open'
    default_code = 'conflict'


class StorageUnavailable(APIException):
    """Persistence failed; the caller may retry the same operation."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'storage temporarily unavailable, please retry'
    default_code = 'retryable'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        logger.exception('unhandled API error', exc_info=exc)
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    detail = None
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    code = getattr(exc, 'default_code', None) or 'api_error'
    headers = {k: resp[k] for k in ('WWW-Authenticate', 'Retry-After') if resp.has_header(k)}
    return Response({'ok': False, 'error': {'code': code, 'message': detail}}, status=resp.status_code, headers=headers)
