from unittest.mock import patch

import redis
from django.core.cache import cache
from django.test import SimpleTestCase, override_settings

from blood.templatetags.system_status import notification_status


class NotificationStatusTests(SimpleTestCase):
    def setUp(self):
        cache.clear()

    @override_settings(CELERY_TASK_ALWAYS_EAGER=True, AWS_SNS_ENABLED=False)
    def test_eager_mode_needs_no_broker(self):
        with patch("blood.templatetags.system_status.redis.Redis.from_url") as from_url:
            status = notification_status()
        self.assertTrue(status["broker_ok"])
        self.assertFalse(status["sms_enabled"])
        from_url.assert_not_called()

    @override_settings(CELERY_TASK_ALWAYS_EAGER=False, CELERY_BROKER_URL="redis://broker:6379/0", AWS_SNS_ENABLED=True)
    def test_unreachable_broker_reported_and_cached(self):
        with patch("blood.templatetags.system_status.redis.Redis.from_url") as from_url:
            from_url.return_value.ping.side_effect = redis.ConnectionError("refused")
            first = notification_status()
            second = notification_status()

        self.assertFalse(first["broker_ok"])
        self.assertEqual(first["broker_error"], "refused")
        self.assertFalse(second["broker_ok"])
        from_url.assert_called_once()
