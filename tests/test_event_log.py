"""
Tests for the structured event log.
"""
import logging
from datetime import datetime

from portfolio.event_log import log_event, SUCCESS


def test_event_is_single_json_line(events):
    log_event(SUCCESS, ip='203.0.113.7', email='jane@example.com', subject=None)

    logged = events()
    assert len(logged) == 1
    event = logged[0]
    assert event['type'] == 'SUCCESS'
    assert event['ip'] == '203.0.113.7'
    assert event['email'] == 'jane@example.com'
    assert event['subject'] is None


def test_timestamp_is_iso_8601_utc(events):
    log_event('ERROR', error='boom')

    timestamp = events()[0]['timestamp']
    assert timestamp.endswith('Z')
    parsed = datetime.fromisoformat(timestamp.replace('Z', '+00:00'))
    assert parsed.utcoffset().total_seconds() == 0


def test_each_call_writes_its_own_record(events):
    log_event('SPAM_BLOCKED', ip='a')
    log_event('RATE_LIMITED', ip='b')

    assert [event['type'] for event in events()] == ['SPAM_BLOCKED', 'RATE_LIMITED']


def test_line_is_not_decorated():
    """The events logger writes the bare JSON line."""
    logger = logging.getLogger('events')
    assert logger.propagate is False
    formatter = logger.handlers[0].formatter
    record = logging.LogRecord('events', logging.INFO, __file__, 1, '{"type": "X"}', None, None)
    assert formatter.format(record) == '{"type": "X"}'


def test_non_serializable_context_is_stringified(events):
    log_event('ERROR', error=ValueError('bad value'))

    assert events()[0]['error'] == 'bad value'
