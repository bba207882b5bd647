"""
Tests for the message store gateway.
"""
from datetime import timedelta
from unittest.mock import patch, Mock

import pytest
from django.utils import timezone

from contact.models import ContactMessage
from contact.store import MessageStore


@pytest.fixture
def store():
    return MessageStore()


@pytest.mark.django_db
class TestMessageStore:

    def test_insert_assigns_id_and_timestamp(self, store):
        before = timezone.now()

        message = store.insert_message(
            first_name='Jane',
            last_name='Doe',
            email='jane@example.com',
            subject='',
            message='Hello there',
            ip_address='203.0.113.7',
        )

        assert message.id is not None
        assert message.created_at >= before
        assert message.subject is None
        assert ContactMessage.objects.filter(pk=message.pk).exists()

    def test_ids_increase(self, store):
        first = store.insert_message('A', 'B', 'a@b.co', None, 'one', None)
        second = store.insert_message('A', 'B', 'a@b.co', None, 'two', None)

        assert second.id > first.id

    def test_list_newest_first_with_offset(self, store):
        base = timezone.now()
        ids = []
        for i in range(5):
            message = store.insert_message('A', 'B', 'a@b.co', None, f'm{i}', None)
            ContactMessage.objects.filter(pk=message.pk).update(created_at=base + timedelta(seconds=i))
            ids.append(message.id)

        page = store.list_messages(limit=2, offset=1)

        assert [m.id for m in page] == [ids[3], ids[2]]

    def test_list_past_the_end(self, store):
        store.insert_message('A', 'B', 'a@b.co', None, 'only', None)

        assert store.list_messages(limit=10, offset=10) == []

    def test_count(self, store):
        assert store.count_messages() == 0
        store.insert_message('A', 'B', 'a@b.co', None, 'one', None)
        assert store.count_messages() == 1

    def test_user_input_is_stored_verbatim(self, store):
        """Quotes and SQL fragments are bound parameters, not SQL."""
        text = "'); DROP TABLE messages; --"

        store.insert_message('A', 'B', 'a@b.co', None, text, None)

        assert ContactMessage.objects.get().message == text
        assert store.count_messages() == 1


class TestMessageStoreClose:

    def test_close_closes_connections_and_pools(self):
        pooled = Mock(alias='default', _connection_pools={'default': object()})
        plain = Mock(spec=['close', 'alias'], alias='default')

        with patch('contact.store.connections') as mock_connections:
            mock_connections.all.return_value = [pooled, plain]
            MessageStore().close()

        mock_connections.all.assert_called_once_with(initialized_only=True)
        pooled.close.assert_called_once_with()
        pooled.close_pool.assert_called_once_with()
        plain.close.assert_called_once_with()

    def test_close_does_not_open_a_pool(self):
        idle = Mock(alias='default', _connection_pools={})

        with patch('contact.store.connections') as mock_connections:
            mock_connections.all.return_value = [idle]
            MessageStore().close()

        idle.close.assert_called_once_with()
        idle.close_pool.assert_not_called()
