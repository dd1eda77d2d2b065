"""Liveness probe used by the load balancer and ``/healthz`` monitors."""
import logging

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def _db_ok() -> bool:
    try:
        with connection.cursor() as c:
            c.execute('SELECT 1')
            return c.fetchone() == (1,)
    except DatabaseError:
        logger.exception('healthz: database check failed')
        return False


def _cache_ok() -> bool:
    try:
        cache.set('healthz', 1, 5)
        return cache.get('healthz') == 1
    except Exception:
        # django-redis raises its own ConnectionInterrupted family
        logger.exception('healthz: cache check failed')
        return False


def healthz(request):
    checks = {'db': _db_ok(), 'cache': _cache_ok()}
    ok = all(checks.values())
    return JsonResponse({'ok': ok, **checks}, status=200 if ok else 503)
