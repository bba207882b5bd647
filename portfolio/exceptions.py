"""
API error rendering.

Every error leaving the API has the shape ``{"error": "<message>"}``.
"""
from rest_framework import exceptions
from rest_framework.views import exception_handler

RATE_LIMIT_MESSAGE = 'Too many requests. Please try again later.'


def _first_message(detail):
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return ''
    if isinstance(detail, (list, tuple)):
        return _first_message(detail[0]) if detail else ''
    return str(detail)


def api_exception_handler(exc, context):
    """DRF exception handler that flattens error responses to {"error": ...}."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        message = 'Unauthorized'
    elif isinstance(exc, exceptions.PermissionDenied):
        message = 'Forbidden'
    else:
        message = _first_message(response.data)

    response.data = {'error': message}
    return response
