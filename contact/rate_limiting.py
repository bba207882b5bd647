"""
Rate Limiting Utilities for Contact Form

Prevents spam and abuse of the contact form.

Counters live in the Django cache. With the default LocMemCache each
gunicorn worker enforces its own limit and a restart clears them; pointing
CACHES at Redis shares the counters across workers and instances.
"""
import math
import time
from functools import wraps

from django.conf import settings
from django.core.cache import caches
from rest_framework.response import Response
from rest_framework import status

from portfolio.event_log import log_event, RATE_LIMITED
from portfolio.exceptions import RATE_LIMIT_MESSAGE


def get_client_ip(request):
    """Get client IP address from request."""
    if getattr(settings, 'TRUST_X_FORWARDED_FOR', False):
        x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
        if x_forwarded_for:
            return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


class FixedWindowRateLimiter:
    """
    Per-key fixed window counter backed by the cache.

    The first hit from a key opens a window of ``window_seconds``; up to
    ``max_requests`` hits are allowed inside it. The counter expires with
    the window, so the next hit after that opens a fresh one.
    """

    def __init__(self, max_requests, window_seconds, key_prefix='contact-rate', cache_alias='default'):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.key_prefix = key_prefix
        self.cache_alias = cache_alias

    @property
    def cache(self):
        return caches[self.cache_alias]

    def _keys(self, key):
        return f"{self.key_prefix}:{key}:count", f"{self.key_prefix}:{key}:started"

    def hit(self, key):
        """
        Count one request for ``key``.

        Returns:
            tuple: (is_allowed, retry_after_seconds)
        """
        cache = self.cache
        count_key, started_key = self._keys(key)
        now = time.time()

        # add() only succeeds for the first hit of a window
        if cache.add(count_key, 0, timeout=self.window_seconds):
            cache.set(started_key, now, timeout=self.window_seconds)

        try:
            count = cache.incr(count_key)
        except ValueError:
            # Window expired between add() and incr()
            cache.add(count_key, 0, timeout=self.window_seconds)
            cache.set(started_key, now, timeout=self.window_seconds)
            count = cache.incr(count_key)

        if count > self.max_requests:
            started = cache.get(started_key, now)
            retry_after = self.window_seconds - (now - started)
            return False, max(1, int(math.ceil(retry_after)))

        return True, 0


def rate_limit_contact_form(limiter_attr='rate_limiter'):
    """
    Decorator for rate limiting contact form submissions.

    Args:
        limiter_attr: Name of the view attribute holding the
            FixedWindowRateLimiter to count against
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapped_view(self, request, *args, **kwargs):
            ip = get_client_ip(request)
            limiter = getattr(self, limiter_attr)

            allowed, retry_after = limiter.hit(ip)
            if not allowed:
                log_event(RATE_LIMITED, ip=ip)
                return Response(
                    {'error': RATE_LIMIT_MESSAGE},
                    status=status.HTTP_429_TOO_MANY_REQUESTS,
                    headers={'Retry-After': str(retry_after)}
                )

            return view_func(self, request, *args, **kwargs)

        return wrapped_view
    return decorator
