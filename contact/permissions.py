"""
Contact Permissions

Access control for the admin message listing.
"""
import secrets

from django.conf import settings
from rest_framework import permissions


class HasAdminToken(permissions.BasePermission):
    """
    Permission for callers presenting the configured admin token.
    """

    message = 'Forbidden'

    def has_permission(self, request, view):
        """Exact match against settings.ADMIN_TOKEN; an unset token matches nothing."""
        expected = getattr(settings, 'ADMIN_TOKEN', '')
        token = request.auth
        if not expected or not token:
            return False
        return secrets.compare_digest(token.encode(), expected.encode())
