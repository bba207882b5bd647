"""
Tests for the fixed window rate limiter.
"""
import threading
import time

import pytest
from django.core.cache import cache
from django.test import RequestFactory

from contact.rate_limiting import FixedWindowRateLimiter, get_client_ip


@pytest.fixture
def clock(monkeypatch):
    """Frozen time.time() shared by the limiter and the cache expiry."""
    now = [1000.0]
    monkeypatch.setattr(time, 'time', lambda: now[0])
    return now


class TestFixedWindowRateLimiter:

    def test_allows_up_to_limit(self):
        limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=900)

        results = [limiter.hit('1.2.3.4')[0] for _ in range(6)]

        assert results == [True, True, True, True, True, False]

    def test_retry_after_counts_down(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=900)
        limiter.hit('ip')

        clock[0] += 300
        allowed, retry_after = limiter.hit('ip')

        assert allowed is False
        assert retry_after == 600

    def test_window_resets(self, clock):
        limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60)
        limiter.hit('ip')
        limiter.hit('ip')
        assert limiter.hit('ip')[0] is False

        clock[0] += 60

        assert limiter.hit('ip') == (True, 0)

    def test_keys_are_independent(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)

        assert limiter.hit('a')[0] is True
        assert limiter.hit('a')[0] is False
        assert limiter.hit('b')[0] is True

    def test_counters_live_in_the_cache(self):
        limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, key_prefix='test-rate')
        limiter.hit('a')

        assert cache.get('test-rate:a:count') == 1

        cache.clear()
        assert limiter.hit('a')[0] is True

    def test_prefixes_do_not_share_counters(self):
        first = FixedWindowRateLimiter(max_requests=1, window_seconds=60, key_prefix='one')
        second = FixedWindowRateLimiter(max_requests=1, window_seconds=60, key_prefix='two')

        assert first.hit('ip')[0] is True
        assert second.hit('ip')[0] is True
        assert first.hit('ip')[0] is False

    def test_concurrent_hits_are_not_undercounted(self):
        limiter = FixedWindowRateLimiter(max_requests=50, window_seconds=900)
        allowed = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                ok, _ = limiter.hit('burst')
                with lock:
                    allowed.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert allowed.count(True) == 50
        assert allowed.count(False) == 50


class TestGetClientIp:

    def test_remote_addr(self):
        request = RequestFactory().post('/api/contact', REMOTE_ADDR='198.51.100.9')
        assert get_client_ip(request) == '198.51.100.9'

    def test_forwarded_for_ignored_by_default(self, settings):
        settings.TRUST_X_FORWARDED_FOR = False
        request = RequestFactory().post(
            '/api/contact', REMOTE_ADDR='10.0.0.1', HTTP_X_FORWARDED_FOR='192.0.2.1'
        )
        assert get_client_ip(request) == '10.0.0.1'

    def test_forwarded_for_when_trusted(self, settings):
        settings.TRUST_X_FORWARDED_FOR = True
        request = RequestFactory().post(
            '/api/contact', REMOTE_ADDR='10.0.0.1', HTTP_X_FORWARDED_FOR=' 192.0.2.1 , 10.0.0.1'
        )
        assert get_client_ip(request) == '192.0.2.1'
