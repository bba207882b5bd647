"""
Message Store

Thin gateway over the ``messages`` table. Every query goes through the ORM,
so user input always reaches the database as bound parameters. With
PostgreSQL the connection comes from Django's psycopg pool and is handed
back after each request, including when a query raises.
"""
import logging

from django.db import connections

from .models import ContactMessage

logger = logging.getLogger(__name__)


class MessageStore:
    """
    Read/write access to stored contact messages.

    Usage:
        store = MessageStore()
        store.insert_message(first_name='Jane', last_name='Doe', email='jane@example.com',
                             subject=None, message='Hello', ip_address='203.0.113.7')
        rows = store.list_messages(limit=20, offset=0)
        total = store.count_messages()
    """

    def __init__(self, using='default'):
        self.using = using

    def insert_message(self, first_name, last_name, email, subject, message, ip_address):
        """Insert one message; the database assigns id and created_at."""
        return ContactMessage.objects.using(self.using).create(
            first_name=first_name,
            last_name=last_name,
            email=email,
            subject=subject or None,
            message=message,
            ip_address=ip_address,
        )

    def list_messages(self, limit, offset):
        """Return up to ``limit`` messages, newest first, skipping ``offset``."""
        queryset = ContactMessage.objects.using(self.using).order_by('-created_at', '-id')
        return list(queryset[offset:offset + limit])

    def count_messages(self):
        return ContactMessage.objects.using(self.using).count()

    def close(self):
        """
        Close every open connection and shut down connection pools.

        Called on worker shutdown so no connection is abandoned mid-query.
        """
        for connection in connections.all(initialized_only=True):
            connection.close()
            # Only pools that were actually opened; touching .pool would open one
            if connection.alias in getattr(connection, '_connection_pools', {}):
                connection.close_pool()
        logger.info("Database connections closed")
