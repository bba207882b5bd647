"""
Tests for the contact form pipeline and the admin message listing
"""
import time
from datetime import timedelta
from unittest.mock import patch, Mock

import pytest
import requests
from django.db import DatabaseError
from django.utils import timezone
from rest_framework import status

from contact.models import ContactMessage
from contact.views import ContactSubmitView, AdminMessageListView


SUBMIT_URL = '/api/contact'
ADMIN_URL = '/api/admin/messages'
ADMIN_TOKEN = 'test-admin-token'
OPERATOR_EMAIL = 'owner@example.com'


@pytest.fixture
def valid_payload():
    return {
        'firstName': 'John',
        'lastName': 'Doe',
        'email': 'john@example.com',
        'subject': 'Hi',
        'message': 'Hello',
        'company': '',
    }


@pytest.fixture
def submit(api_client):
    def _submit(payload, ip='203.0.113.7'):
        return api_client.post(SUBMIT_URL, payload, format='json', REMOTE_ADDR=ip)
    return _submit


@pytest.fixture
def stored_messages(db):
    """25 stored messages, oldest first, one minute apart."""
    base = timezone.now() - timedelta(hours=1)
    created = []
    for i in range(25):
        message = ContactMessage.objects.create(
            first_name=f'User{i + 1}',
            last_name='Test',
            email=f'user{i + 1}@example.com',
            subject=None,
            message=f'Message {i + 1}',
            ip_address='198.51.100.1',
        )
        ContactMessage.objects.filter(pk=message.pk).update(created_at=base + timedelta(minutes=i))
        created.append(message)
    return created


@pytest.mark.django_db
class TestContactFormSubmission:
    """Test public contact form submission."""

    def test_submit_valid_contact_form(self, submit, valid_payload, outbox, events):
        """Valid submission emails the operator, stores one row and logs SUCCESS."""
        response = submit(valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'success': True}

        assert len(outbox) == 1
        email = outbox[0]
        assert email.to == [OPERATOR_EMAIL]
        assert email.reply_to == ['john@example.com']
        assert email.subject == 'Hi'
        assert 'Name: John Doe' in email.body
        assert 'Email: john@example.com' in email.body
        assert 'Hello' in email.body

        assert ContactMessage.objects.count() == 1
        stored = ContactMessage.objects.get()
        assert stored.first_name == 'John'
        assert stored.last_name == 'Doe'
        assert stored.email == 'john@example.com'
        assert stored.subject == 'Hi'
        assert stored.message == 'Hello'
        assert stored.ip_address == '203.0.113.7'
        assert stored.created_at is not None

        success = events('SUCCESS')
        assert len(success) == 1
        assert success[0]['ip'] == '203.0.113.7'
        assert success[0]['email'] == 'john@example.com'
        assert success[0]['subject'] == 'Hi'

    def test_missing_subject_uses_default_email_subject(self, submit, valid_payload, outbox):
        """Without a subject the email falls back to the default and the row stores NULL."""
        del valid_payload['subject']

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert outbox[0].subject == 'New Portfolio Contact'
        assert ContactMessage.objects.get().subject is None

    @pytest.mark.parametrize('field', ['firstName', 'lastName', 'email', 'message'])
    def test_submit_missing_required_field(self, submit, valid_payload, field, outbox):
        """Any missing required field is rejected."""
        del valid_payload[field]

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Missing required fields.'}
        assert outbox == []
        assert ContactMessage.objects.count() == 0

    def test_blank_required_field_counts_as_missing(self, submit, valid_payload):
        """Whitespace-only values are empty after trimming."""
        valid_payload['lastName'] = '   '

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error'] == 'Missing required fields.'

    @pytest.mark.parametrize('value', [True, {'name': 'John'}, ['John']])
    def test_non_text_field_counts_as_missing(self, submit, valid_payload, value, outbox):
        """Booleans, objects and arrays are not names."""
        valid_payload['firstName'] = value

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Missing required fields.'}
        assert outbox == []
        assert ContactMessage.objects.count() == 0

    def test_missing_fields_checked_before_email_format(self, submit, valid_payload):
        """The required-field check wins over the email format check."""
        del valid_payload['firstName']
        valid_payload['email'] = 'not-an-email'

        response = submit(valid_payload)

        assert response.json()['error'] == 'Missing required fields.'

    @pytest.mark.parametrize('address', ['invalid-email', 'john@', '@example.com', 'john doe@example.com'])
    def test_submit_invalid_email(self, submit, valid_payload, address):
        """Malformed addresses are rejected."""
        valid_payload['email'] = address

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Please provide a valid email address'}

    def test_short_valid_email_passes(self, submit, valid_payload):
        valid_payload['email'] = 'a@b.co'

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_200_OK

    def test_submit_email_too_long(self, submit, valid_payload):
        """Addresses over 254 characters are rejected."""
        valid_payload['email'] = 'a' * 250 + '@example.com'

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Email address is too long'}

    def test_message_at_limit_is_accepted(self, submit, valid_payload):
        valid_payload['message'] = 'a' * 1000

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert len(ContactMessage.objects.get().message) == 1000

    def test_message_over_limit_is_rejected(self, submit, valid_payload, outbox):
        valid_payload['message'] = 'a' * 1001

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Message must be less than 1000 characters'}
        assert outbox == []

    def test_name_too_long(self, submit, valid_payload):
        valid_payload['firstName'] = 'J' * 21

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Name must be 20 characters or fewer'}

    def test_subject_too_long(self, submit, valid_payload):
        valid_payload['subject'] = 's' * 101

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Subject must be 100 characters or fewer'}

    def test_markup_is_escaped_before_email_and_storage(self, submit, valid_payload, outbox):
        """Script tags never reach the email or the database raw."""
        valid_payload['message'] = '<script>alert("x")</script>'
        valid_payload['firstName'] = '<b>John</b>'
        valid_payload['subject'] = 'Tom & Jerry'

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_200_OK
        stored = ContactMessage.objects.get()
        assert stored.message == '&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;'
        assert stored.first_name == '&lt;b&gt;John&lt;/b&gt;'
        assert stored.subject == 'Tom &amp; Jerry'
        assert '<script>' not in outbox[0].body
        assert '&lt;script&gt;' in outbox[0].body
        assert outbox[0].subject == 'Tom &amp; Jerry'

    def test_email_address_is_not_escaped(self, submit, valid_payload):
        valid_payload['email'] = "o'brien@example.com"

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert ContactMessage.objects.get().email == "o'brien@example.com"

    def test_malformed_json(self, api_client):
        response = api_client.post(SUBMIT_URL, '{"firstName": ', content_type='application/json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'error' in response.json()

    def test_get_not_allowed(self, api_client):
        response = api_client.get(SUBMIT_URL)

        assert response.status_code == status.HTTP_405_METHOD_NOT_ALLOWED
        assert response.json() == {'error': 'Method "GET" not allowed.'}

    def test_non_object_body_is_missing_fields(self, api_client):
        response = api_client.post(SUBMIT_URL, [1, 2], format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {'error': 'Missing required fields.'}


@pytest.mark.django_db
class TestHoneypot:
    """Test the company honeypot field."""

    def test_honeypot_masquerades_as_success(self, submit, valid_payload, outbox, events):
        """A filled honeypot looks like success but nothing is sent or stored."""
        valid_payload['company'] = 'Spam Inc'

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'success': True}
        assert outbox == []
        assert ContactMessage.objects.count() == 0
        assert [event['type'] for event in events()] == ['SPAM_BLOCKED']
        assert events()[0]['ip'] == '203.0.113.7'

    def test_honeypot_wins_over_invalid_fields(self, submit, outbox):
        """Even an otherwise invalid payload gets the success shape."""
        response = submit({'company': 'bot', 'email': 'nope'})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'success': True}
        assert outbox == []
        assert ContactMessage.objects.count() == 0


@pytest.mark.django_db
class TestUpstreamFailures:
    """Test email provider and database failures."""

    @pytest.fixture
    def resend_backend(self, settings):
        settings.EMAIL_BACKEND = 'portfolio.resend_service.EmailBackend'
        settings.RESEND_API_KEY = 're_test'
        with patch('portfolio.resend_service.requests.post') as mock_post:
            yield mock_post

    def test_provider_error_payload(self, submit, valid_payload, events, resend_backend):
        """A provider-reported error is logged and turns into a 500 with nothing stored."""
        resend_backend.return_value = Mock(
            status_code=422,
            reason='Unprocessable Entity',
            content=b'{}',
            **{'json.return_value': {'name': 'validation_error', 'message': 'The to field is invalid'}}
        )

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'error': 'Failed to send message. Please try again later.'}
        assert ContactMessage.objects.count() == 0

        resend_errors = events('RESEND_ERROR')
        assert len(resend_errors) == 1
        assert resend_errors[0]['ip'] == '203.0.113.7'
        assert resend_errors[0]['email'] == 'john@example.com'
        assert resend_errors[0]['error'] == 'The to field is invalid'
        errors = events('ERROR')
        assert len(errors) == 1
        assert errors[0]['details'] == 'ResendAPIError'
        assert events('SUCCESS') == []

    def test_transport_failure(self, submit, valid_payload, events, resend_backend):
        """A transport exception goes straight to the generic failure path."""
        resend_backend.side_effect = requests.ConnectionError('Connection refused')

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'error': 'Failed to send message. Please try again later.'}
        assert ContactMessage.objects.count() == 0
        assert events('RESEND_ERROR') == []

        errors = events('ERROR')
        assert len(errors) == 1
        assert errors[0]['ip'] == '203.0.113.7'
        assert errors[0]['error'] == 'Connection refused'
        assert errors[0]['details'] == 'ConnectionError'

    def test_database_failure_after_email(self, submit, valid_payload, outbox, events):
        """A failed insert after a sent email is a 500; the email is not recalled."""
        with patch.object(ContactSubmitView.store, 'insert_message', side_effect=DatabaseError('db down')):
            response = submit(valid_payload)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert len(outbox) == 1
        errors = events('ERROR')
        assert len(errors) == 1
        assert errors[0]['error'] == 'db down'
        assert events('SUCCESS') == []


@pytest.mark.django_db
class TestRateLimiting:
    """Test rate limiting for contact form."""

    def test_sixth_request_in_window_is_rejected(self, submit, valid_payload, events):
        """Five submissions pass, the sixth gets a 429."""
        for i in range(5):
            valid_payload['message'] = f'Test message number {i}'
            response = submit(valid_payload)
            assert response.status_code == status.HTTP_200_OK

        response = submit(valid_payload)

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert response.json() == {'error': 'Too many requests. Please try again later.'}
        assert int(response['Retry-After']) > 0
        assert ContactMessage.objects.count() == 5

        limited = events('RATE_LIMITED')
        assert len(limited) == 1
        assert limited[0]['ip'] == '203.0.113.7'

    def test_rejected_requests_count_toward_limit(self, submit):
        """Every request reaching the endpoint counts, valid or not."""
        for _ in range(5):
            assert submit({}).status_code == status.HTTP_400_BAD_REQUEST

        assert submit({}).status_code == status.HTTP_429_TOO_MANY_REQUESTS

    def test_limit_is_per_address(self, submit, valid_payload):
        for _ in range(5):
            submit(valid_payload, ip='198.51.100.1')

        assert submit(valid_payload, ip='198.51.100.1').status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert submit(valid_payload, ip='198.51.100.2').status_code == status.HTTP_200_OK

    def test_window_elapses(self, submit, valid_payload, monkeypatch):
        """After the window passes the address may submit again."""
        now = [1000.0]
        monkeypatch.setattr(time, 'time', lambda: now[0])

        for _ in range(5):
            assert submit(valid_payload).status_code == status.HTTP_200_OK
        assert submit(valid_payload).status_code == status.HTTP_429_TOO_MANY_REQUESTS

        now[0] += 15 * 60

        assert submit(valid_payload).status_code == status.HTTP_200_OK

    def test_admin_endpoint_is_not_rate_limited(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')
        for _ in range(10):
            assert api_client.get(ADMIN_URL).status_code == status.HTTP_200_OK

    def test_forwarded_address_when_trusted(self, api_client, valid_payload, settings, events):
        settings.TRUST_X_FORWARDED_FOR = True

        api_client.post(
            SUBMIT_URL, valid_payload, format='json',
            HTTP_X_FORWARDED_FOR='192.0.2.10, 10.0.0.1', REMOTE_ADDR='10.0.0.1'
        )

        assert ContactMessage.objects.get().ip_address == '192.0.2.10'
        assert events('SUCCESS')[0]['ip'] == '192.0.2.10'


@pytest.mark.django_db
class TestAdminMessageListView:
    """Test the admin message listing."""

    def test_missing_header(self, api_client):
        """No credentials at all is a 401."""
        response = api_client.get(ADMIN_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {'error': 'Unauthorized'}
        assert response['WWW-Authenticate'] == 'Bearer'

    @pytest.mark.parametrize('header', [
        f'Token {ADMIN_TOKEN}',
        'Bearer',
        'Bearer ',
        f'bearer {ADMIN_TOKEN}',
        f'Bearer {ADMIN_TOKEN} extra',
    ])
    def test_malformed_header(self, api_client, header):
        api_client.credentials(HTTP_AUTHORIZATION=header)

        response = api_client.get(ADMIN_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {'error': 'Unauthorized'}

    def test_wrong_token(self, api_client):
        """A well-formed but wrong token is a 403."""
        api_client.credentials(HTTP_AUTHORIZATION='Bearer wrong')

        response = api_client.get(ADMIN_URL)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {'error': 'Forbidden'}

    def test_token_match_is_exact(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN.upper()}')

        assert api_client.get(ADMIN_URL).status_code == status.HTTP_403_FORBIDDEN

    def test_unset_admin_token_rejects_everything(self, api_client, settings):
        settings.ADMIN_TOKEN = ''
        api_client.credentials(HTTP_AUTHORIZATION='Bearer anything')

        assert api_client.get(ADMIN_URL).status_code == status.HTTP_403_FORBIDDEN

    def test_correct_token_lists_messages(self, api_client, stored_messages):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')

        response = api_client.get(ADMIN_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data['page'] == 1
        assert data['limit'] == 20
        assert data['total'] == 25
        assert data['totalPages'] == 2
        assert len(data['messages']) == 20
        assert data['messages'][0]['id'] == stored_messages[-1].id
        assert set(data['messages'][0]) == {
            'id', 'first_name', 'last_name', 'email', 'subject',
            'message', 'ip_address', 'created_at'
        }

    def test_second_page_newest_first(self, api_client, stored_messages):
        """page=2, limit=10 over 25 rows returns the 11th-20th newest."""
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')

        response = api_client.get(ADMIN_URL, {'page': 2, 'limit': 10})

        data = response.json()
        assert data['page'] == 2
        assert data['limit'] == 10
        assert data['total'] == 25
        assert data['totalPages'] == 3
        newest_first = list(reversed(stored_messages))
        assert [m['id'] for m in data['messages']] == [m.id for m in newest_first[10:20]]

    def test_last_partial_page(self, api_client, stored_messages):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')

        response = api_client.get(ADMIN_URL, {'page': 3, 'limit': 10})

        assert [m['id'] for m in response.json()['messages']] == [m.id for m in stored_messages[4::-1]]

    @pytest.mark.parametrize('params, expected_page, expected_limit', [
        ({'page': 'abc'}, 1, 20),
        ({'page': '0'}, 1, 20),
        ({'page': '-2'}, 1, 20),
        ({'limit': 'ten'}, 1, 20),
        ({'limit': '0'}, 1, 20),
        ({'limit': '-3'}, 1, 20),
        ({'limit': '500'}, 1, 100),
        ({'page': '1.5', 'limit': '5'}, 1, 5),
    ])
    def test_pagination_fallbacks(self, api_client, params, expected_page, expected_limit):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')

        response = api_client.get(ADMIN_URL, params)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['page'] == expected_page
        assert response.json()['limit'] == expected_limit

    def test_huge_page_number(self, api_client, stored_messages, events):
        """A page far past the end is clamped to the largest valid offset."""
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')

        response = api_client.get(ADMIN_URL, {'page': '100000000000000000000'})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data['page'] == (2 ** 63 - 1) // 20 + 1
        assert data['total'] == 25
        assert data['messages'] == []
        assert events('ERROR') == []

    def test_empty_store(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')

        data = api_client.get(ADMIN_URL).json()

        assert data['total'] == 0
        assert data['totalPages'] == 0
        assert data['messages'] == []

    def test_store_failure(self, api_client, events):
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {ADMIN_TOKEN}')

        with patch.object(AdminMessageListView.store, 'list_messages', side_effect=DatabaseError('timeout')):
            response = api_client.get(ADMIN_URL)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {'error': 'Failed to fetch messages'}
        errors = events('ERROR')
        assert len(errors) == 1
        assert errors[0]['context'] == 'admin fetch'
        assert errors[0]['error'] == 'timeout'


class TestHealthCheck:

    def test_health(self, api_client):
        response = api_client.get('/api/health')

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {'status': 'ok'}


class TestCors:
    """Only the configured frontend origin is allowed."""

    def test_frontend_origin_allowed(self, api_client, settings):
        origin = settings.FRONTEND_URL.rstrip('/')
        response = api_client.options(
            SUBMIT_URL,
            HTTP_ORIGIN=origin,
            HTTP_ACCESS_CONTROL_REQUEST_METHOD='POST',
        )

        assert response['Access-Control-Allow-Origin'] == origin

    def test_other_origin_not_allowed(self, api_client):
        response = api_client.options(
            SUBMIT_URL,
            HTTP_ORIGIN='https://evil.example',
            HTTP_ACCESS_CONTROL_REQUEST_METHOD='POST',
        )

        assert 'Access-Control-Allow-Origin' not in response
