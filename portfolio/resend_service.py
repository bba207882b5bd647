"""
Resend Email Backend

Django email backend that delivers through the Resend HTTP API. Select it
with ``EMAIL_BACKEND = 'portfolio.resend_service.EmailBackend'`` and send
with ``django.core.mail`` as usual.

Two failure modes are kept apart:
- transport errors (connection refused, timeout) raise
  ``requests.RequestException``;
- provider errors (a non-2xx response) raise ``ResendAPIError`` carrying
  the provider's message, error name and status code.

Documentation: https://resend.com/docs/api-reference/emails/send-email
"""

import logging

import requests
from django.conf import settings
from django.core.mail.backends.base import BaseEmailBackend

logger = logging.getLogger(__name__)


class ResendAPIError(Exception):
    """Raised when Resend was reached but refused the email."""

    def __init__(self, message, status_code=None, name=None):
        super().__init__(message)
        self.status_code = status_code
        self.name = name


class EmailBackend(BaseEmailBackend):
    """
    Send ``EmailMessage`` objects through Resend.

    On success the provider id is stored on the message as ``resend_id``.
    """

    def __init__(self, api_key=None, api_url=None, timeout=None, fail_silently=False, **kwargs):
        super().__init__(fail_silently=fail_silently, **kwargs)
        self.api_key = api_key if api_key is not None else settings.RESEND_API_KEY
        self.api_url = api_url or settings.RESEND_API_URL
        self.timeout = timeout or settings.EMAIL_TIMEOUT

        if not self.api_key:
            logger.warning("RESEND_API_KEY is not set. Email delivery will be refused by the provider.")

    def send_messages(self, email_messages):
        """Send each message; return the number delivered."""
        if not email_messages:
            return 0

        sent = 0
        for message in email_messages:
            try:
                if self._send(message):
                    sent += 1
            except (requests.RequestException, ResendAPIError):
                if not self.fail_silently:
                    raise
        return sent

    def _send(self, message):
        if not message.recipients():
            return False

        logger.info(f"Sending email to {', '.join(message.to)} (reply-to: {', '.join(message.reply_to)})")

        response = requests.post(
            self.api_url,
            json=build_payload(message),
            headers={
                'Authorization': f'Bearer {self.api_key}',
                'Content-Type': 'application/json',
            },
            timeout=self.timeout
        )

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if 200 <= response.status_code < 300:
            message.resend_id = data.get('id')
            logger.info(f"Email accepted by Resend. Id: {message.resend_id}")
            return True

        error_message = data.get('message') or data.get('error') or response.reason or 'Unknown error'
        logger.error(
            f"Resend rejected email. Status: {response.status_code}, "
            f"Name: {data.get('name', 'N/A')}, Error: {error_message}"
        )
        raise ResendAPIError(error_message, status_code=response.status_code, name=data.get('name'))


def build_payload(message):
    """Translate a Django EmailMessage into a Resend request body."""
    payload = {
        'from': message.from_email,
        'to': list(message.to),
        'subject': message.subject,
        'text': message.body,
    }
    if message.cc:
        payload['cc'] = list(message.cc)
    if message.bcc:
        payload['bcc'] = list(message.bcc)
    if message.reply_to:
        payload['reply_to'] = list(message.reply_to)

    for content, mimetype in getattr(message, 'alternatives', []):
        if mimetype == 'text/html':
            payload['html'] = content
            break

    return payload
