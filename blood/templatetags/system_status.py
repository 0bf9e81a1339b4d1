import logging

import redis
from django import template
from django.conf import settings
from django.core.cache import cache


logger = logging.getLogger(__name__)
register = template.Library()

BROKER_HEALTH_CACHE_KEY = 'admin:notification_broker_health:v1'


def _broker_reachable(broker_url: str) -> tuple:
    cached = cache.get(BROKER_HEALTH_CACHE_KEY)
    if isinstance(cached, dict):
        return cached.get('ok'), cached.get('error') or ''

    try:
        client = redis.Redis.from_url(
            broker_url,
            socket_connect_timeout=0.25,
            socket_timeout=0.25,
            retry_on_timeout=False,
        )
        client.ping()
        ok, error = True, ''
    except redis.RedisError as exc:
        ok, error = False, str(exc)
        logger.warning('Reminder broker unreachable: %s', exc)

    cache.set(BROKER_HEALTH_CACHE_KEY, {'ok': ok, 'error': error}, timeout=30)
    return ok, error


@register.simple_tag
def notification_status() -> dict:
    """Whether booking texts and reminders will actually go out.

    Shown as a banner on the admin dashboard. With eager Celery tasks no
    broker is involved; otherwise a Redis broker is pinged (result cached).
    """

    eager = bool(getattr(settings, 'CELERY_TASK_ALWAYS_EAGER', False))
    broker_url = str(getattr(settings, 'CELERY_BROKER_URL', '') or '')

    status = {
        'sms_enabled': bool(getattr(settings, 'AWS_SNS_ENABLED', False)),
        'task_always_eager': eager,
        'broker_ok': None,
        'broker_error': '',
    }

    if eager:
        status['broker_ok'] = True
    elif broker_url.startswith(('redis://', 'rediss://')):
        status['broker_ok'], status['broker_error'] = _broker_reachable(broker_url)
    return status
