"""
Tests for the Resend email backend.
"""
from unittest.mock import patch, Mock

import pytest
import requests
from django.core import mail
from django.core.mail import EmailMessage, EmailMultiAlternatives

from portfolio.resend_service import EmailBackend, ResendAPIError, build_payload


def _response(status_code, json_body=None, reason='OK'):
    response = Mock()
    response.status_code = status_code
    response.reason = reason
    response.content = b'{}' if json_body is not None else b''
    response.json.return_value = json_body
    return response


@pytest.fixture
def message():
    return EmailMessage(
        subject='New Portfolio Contact',
        body='Name: John Doe',
        from_email='Portfolio <contact@example.com>',
        to=['owner@example.com'],
        reply_to=['john@example.com'],
    )


@pytest.fixture
def backend():
    return EmailBackend(api_key='re_test', api_url='https://api.resend.test/emails', timeout=5)


class TestBuildPayload:

    def test_payload(self, message):
        assert build_payload(message) == {
            'from': 'Portfolio <contact@example.com>',
            'to': ['owner@example.com'],
            'subject': 'New Portfolio Contact',
            'text': 'Name: John Doe',
            'reply_to': ['john@example.com'],
        }

    def test_payload_without_reply_to(self):
        message = EmailMessage(subject='s', body='t', from_email='x@y.co', to=['a@b.co'])
        assert 'reply_to' not in build_payload(message)

    def test_html_alternative_and_copies(self):
        message = EmailMultiAlternatives(
            subject='s', body='t', from_email='x@y.co',
            to=['a@b.co'], cc=['c@d.co'], bcc=['e@f.co']
        )
        message.attach_alternative('<p>t</p>', 'text/html')

        payload = build_payload(message)

        assert payload['html'] == '<p>t</p>'
        assert payload['cc'] == ['c@d.co']
        assert payload['bcc'] == ['e@f.co']


class TestEmailBackend:

    @patch('portfolio.resend_service.requests.post')
    def test_success(self, mock_post, backend, message):
        mock_post.return_value = _response(200, {'id': 'email_123'})

        sent = backend.send_messages([message])

        assert sent == 1
        assert message.resend_id == 'email_123'
        mock_post.assert_called_once_with(
            'https://api.resend.test/emails',
            json=build_payload(message),
            headers={
                'Authorization': 'Bearer re_test',
                'Content-Type': 'application/json',
            },
            timeout=5
        )

    @patch('portfolio.resend_service.requests.post')
    def test_provider_error_raises_resend_api_error(self, mock_post, backend, message):
        mock_post.return_value = _response(
            422,
            {'statusCode': 422, 'name': 'validation_error', 'message': 'Invalid `to` field.'},
            reason='Unprocessable Entity'
        )

        with pytest.raises(ResendAPIError) as excinfo:
            backend.send_messages([message])

        assert str(excinfo.value) == 'Invalid `to` field.'
        assert excinfo.value.status_code == 422
        assert excinfo.value.name == 'validation_error'

    @patch('portfolio.resend_service.requests.post')
    def test_provider_error_without_body(self, mock_post, backend, message):
        mock_post.return_value = _response(503, None, reason='Service Unavailable')

        with pytest.raises(ResendAPIError, match='Service Unavailable'):
            backend.send_messages([message])

    @patch('portfolio.resend_service.requests.post')
    def test_non_json_error_body(self, mock_post, backend, message):
        response = _response(502, None, reason='Bad Gateway')
        response.content = b'<html>bad gateway</html>'
        response.json.side_effect = ValueError('not json')
        mock_post.return_value = response

        with pytest.raises(ResendAPIError, match='Bad Gateway'):
            backend.send_messages([message])

    @patch('portfolio.resend_service.requests.post')
    def test_transport_error_propagates(self, mock_post, backend, message):
        mock_post.side_effect = requests.Timeout('timed out')

        with pytest.raises(requests.Timeout):
            backend.send_messages([message])

    @patch('portfolio.resend_service.requests.post')
    def test_fail_silently(self, mock_post, message):
        mock_post.return_value = _response(500, {'message': 'boom'})
        backend = EmailBackend(api_key='re_test', fail_silently=True)

        assert backend.send_messages([message]) == 0

    @patch('portfolio.resend_service.requests.post')
    def test_no_recipients_is_skipped(self, mock_post, backend):
        message = EmailMessage(subject='s', body='t', from_email='x@y.co', to=[])

        assert backend.send_messages([message]) == 0
        mock_post.assert_not_called()

    def test_reads_settings(self, settings):
        settings.RESEND_API_KEY = 're_from_settings'
        settings.RESEND_API_URL = 'https://api.resend.com/emails'
        settings.EMAIL_TIMEOUT = 7

        backend = EmailBackend()

        assert backend.api_key == 're_from_settings'
        assert backend.api_url == 'https://api.resend.com/emails'
        assert backend.timeout == 7


@patch('portfolio.resend_service.requests.post')
def test_selected_through_email_backend_setting(mock_post, settings, message):
    settings.EMAIL_BACKEND = 'portfolio.resend_service.EmailBackend'
    settings.RESEND_API_KEY = 're_test'
    mock_post.return_value = _response(200, {'id': 'email_9'})

    assert isinstance(mail.get_connection(), EmailBackend)
    assert message.send() == 1
    assert mock_post.call_args.kwargs['json']['to'] == ['owner@example.com']
