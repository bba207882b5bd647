"""
Admin Token Authentication

Reads the shared admin secret from ``Authorization: Bearer <token>``.
"""
from rest_framework import authentication

KEYWORD = 'Bearer'


class AdminTokenAuthentication(authentication.BaseAuthentication):
    """
    Accepts any well-formed bearer header and exposes the token as
    ``request.auth``. Whether the token is the right one is decided by
    ``HasAdminToken``, so a wrong token is a 403 and a missing or malformed
    header is a 401.
    """

    def authenticate(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        parts = header.split(' ')

        if len(parts) != 2 or parts[0] != KEYWORD or not parts[1]:
            return None

        return (None, parts[1])

    def authenticate_header(self, request):
        return KEYWORD
