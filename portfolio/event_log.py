"""
Structured event log.

Each call writes one self-contained JSON line on the ``events`` logger:
a UTC ISO-8601 timestamp, the event type and the supplied context. The
logger is configured in settings.LOGGING with a message-only formatter so
the line can be shipped to a log pipeline as-is.
"""
import json
import logging

from django.utils import timezone

logger = logging.getLogger('events')

SPAM_BLOCKED = 'SPAM_BLOCKED'
RATE_LIMITED = 'RATE_LIMITED'
RESEND_ERROR = 'RESEND_ERROR'
SUCCESS = 'SUCCESS'
ERROR = 'ERROR'


def _timestamp():
    return timezone.now().isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def log_event(event_type, **context):
    """
    Emit a single structured event.

    Example:
        log_event(SUCCESS, ip='203.0.113.7', email='jane@example.com')
    """
    record = {'timestamp': _timestamp(), 'type': event_type}
    record.update(context)
    logger.info(json.dumps(record, default=str))
