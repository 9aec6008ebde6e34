# orders/throttling.py
"""
ORDER CREATION RATE LIMIT

Per-user (per-IP when anonymous) sliding window on POST /api/orders/,
backed by the shared cache (Redis in production).

- Rate comes from settings.ORDER_CREATE_THROTTLE_RATE, e.g. "10/10m".
  Periods accept an optional multiplier: "5/30s", "100/2h", "10/min".
- Cache store unreachable: ORDER_THROTTLE_FAIL_OPEN decides. True admits the
  request (warning logged), False rejects it (error logged).
"""

import logging
import re

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from redis.exceptions import RedisError
from rest_framework.throttling import SimpleRateThrottle

logger = logging.getLogger(__name__)

PERIOD_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}
PERIOD_RE = re.compile(r"(\d*)\s*([smhd])[a-z]*")

STORE_ERRORS = (RedisError, OSError)


def parse_period(period: str) -> int:
    match = PERIOD_RE.fullmatch((period or "").strip().lower())
    if match is None:
        raise ImproperlyConfigured(f"Invalid throttle period: {period!r}")
    multiplier = int(match.group(1) or 1)
    return multiplier * PERIOD_SECONDS[match.group(2)]


class OrderCreateThrottle(SimpleRateThrottle):
    scope = "order_create"

    def get_rate(self):
        return getattr(settings, "ORDER_CREATE_THROTTLE_RATE", "10/10m")

    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        num, _, period = str(rate).partition("/")
        return (int(num), parse_period(period))

    def get_cache_key(self, request, view):
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            ident = user.pk
        else:
            ident = self.get_ident(request)
        return self.cache_format % {"scope": self.scope, "ident": ident}

    def allow_request(self, request, view):
        try:
            return super().allow_request(request, view)
        except STORE_ERRORS as exc:
            self.history = []
            self.now = self.timer()

            if getattr(settings, "ORDER_THROTTLE_FAIL_OPEN", True):
                logger.warning(
                    "Order throttle store unavailable, admitting request",
                    extra={"error": str(exc)},
                )
                return True

            logger.error(
                "Order throttle store unavailable, rejecting request",
                extra={"error": str(exc)},
            )
            return False
