"""
Shared pytest fixtures.
"""
import json
import logging

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

ADMIN_TOKEN = 'test-admin-token'
OPERATOR_EMAIL = 'owner@example.com'


@pytest.fixture(autouse=True)
def contact_settings(settings):
    """Route email to the in-memory outbox and pin the contact settings."""
    settings.EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
    settings.CONTACT_EMAIL_TO = OPERATOR_EMAIL
    settings.ADMIN_TOKEN = ADMIN_TOKEN
    settings.TRUST_X_FORWARDED_FOR = False
    return settings


@pytest.fixture(autouse=True)
def clear_rate_limits():
    """Fresh rate limit counters for every test."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """API client for making requests."""
    return APIClient()


@pytest.fixture
def outbox(mailoutbox):
    return mailoutbox


@pytest.fixture
def events(caplog):
    """
    Capture structured events.

    Returns a callable giving the decoded events written so far. The
    ``events`` logger does not propagate, so caplog's handler is attached
    to it directly.
    """
    logger = logging.getLogger('events')
    logger.addHandler(caplog.handler)

    def _events(event_type=None):
        decoded = [
            json.loads(record.getMessage())
            for record in caplog.records
            if record.name == 'events'
        ]
        if event_type is not None:
            decoded = [event for event in decoded if event['type'] == event_type]
        return decoded

    yield _events
    logger.removeHandler(caplog.handler)
