"""
Contact Views

API endpoints for contact form submission and the admin message listing.
"""
import logging
import math

from django.conf import settings
from django.core.mail import EmailMessage
from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny

from portfolio.event_log import log_event, SPAM_BLOCKED, RESEND_ERROR, SUCCESS, ERROR
from portfolio.resend_service import ResendAPIError
from .authentication import AdminTokenAuthentication
from .permissions import HasAdminToken
from .rate_limiting import FixedWindowRateLimiter, rate_limit_contact_form, get_client_ip
from .serializers import ContactFormSubmitSerializer, ContactMessageSerializer
from .store import MessageStore

logger = logging.getLogger(__name__)

SUBMIT_FAILED_MESSAGE = 'Failed to send message. Please try again later.'
FETCH_FAILED_MESSAGE = 'Failed to fetch messages'

# Largest row offset the database accepts (signed 64-bit)
MAX_OFFSET = 2 ** 63 - 1


def build_notification(data):
    """Build the operator notification for a sanitized submission."""
    subject = data['subject'] or settings.CONTACT_EMAIL_DEFAULT_SUBJECT
    text = (
        f"Name: {data['first_name']} {data['last_name']}\n"
        f"Email: {data['email']}\n"
        f"Subject: {data['subject'] or ''}\n"
        f"\n"
        f"Message:\n"
        f"{data['message']}\n"
    )
    return EmailMessage(
        subject=subject,
        body=text,
        from_email=settings.CONTACT_EMAIL_FROM,
        to=[settings.CONTACT_EMAIL_TO],
        reply_to=[data['email']],
    )


class ContactSubmitView(APIView):
    """
    Public endpoint for contact form submissions.

    POST /api/contact

    No authentication required. Rate limited per source address. A filled
    ``company`` honeypot gets the normal success response so bots cannot
    tell they were filtered.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    rate_limiter = FixedWindowRateLimiter(
        max_requests=settings.CONTACT_RATE_LIMIT_MAX,
        window_seconds=settings.CONTACT_RATE_LIMIT_WINDOW_SECONDS,
    )
    store = MessageStore()

    @rate_limit_contact_form()
    def post(self, request):
        """Submit a contact form."""
        ip = get_client_ip(request)
        payload = request.data if isinstance(request.data, dict) else {}

        if payload.get('company'):
            log_event(SPAM_BLOCKED, ip=ip)
            return Response({'success': True}, status=status.HTTP_200_OK)

        serializer = ContactFormSubmitSerializer(data=payload)
        if not serializer.is_valid():
            return Response(
                {'error': serializer.first_error},
                status=status.HTTP_400_BAD_REQUEST
            )

        data = serializer.validated_data

        try:
            logger.info(f"Attempting to send contact email from: {data['email']}")
            try:
                build_notification(data).send(fail_silently=False)
            except ResendAPIError as exc:
                log_event(RESEND_ERROR, ip=ip, email=data['email'], error=str(exc))
                raise

            self.store.insert_message(
                first_name=data['first_name'],
                last_name=data['last_name'],
                email=data['email'],
                subject=data['subject'],
                message=data['message'],
                ip_address=ip,
            )
        except Exception as exc:
            logger.exception("Contact submission failed")
            log_event(ERROR, ip=ip, error=str(exc), details=type(exc).__name__)
            return Response(
                {'error': SUBMIT_FAILED_MESSAGE},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        log_event(SUCCESS, ip=ip, email=data['email'], subject=data['subject'])
        return Response({'success': True}, status=status.HTTP_200_OK)


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class AdminMessageListView(APIView):
    """
    List stored contact messages, newest first.

    GET /api/admin/messages

    Headers:
    - Authorization: Bearer <ADMIN_TOKEN>

    Query Parameters:
    - page: Page number (default: 1)
    - limit: Items per page (default: 20, max: 100)
    """

    authentication_classes = [AdminTokenAuthentication]
    permission_classes = [HasAdminToken]

    store = MessageStore()

    def get(self, request):
        page = _positive_int(request.query_params.get('page'), 1)
        limit = min(
            _positive_int(request.query_params.get('limit'), settings.ADMIN_MESSAGES_DEFAULT_LIMIT),
            settings.ADMIN_MESSAGES_MAX_LIMIT
        )
        # Past this page the offset no longer fits the database's integer type
        page = min(page, MAX_OFFSET // limit + 1)
        offset = (page - 1) * limit

        try:
            messages = self.store.list_messages(limit=limit, offset=offset)
            total = self.store.count_messages()
        except Exception as exc:
            logger.exception("Admin message fetch failed")
            log_event(ERROR, context='admin fetch', error=str(exc))
            return Response(
                {'error': FETCH_FAILED_MESSAGE},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response({
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit),
            'messages': ContactMessageSerializer(messages, many=True).data,
        })


class HealthCheckView(APIView):
    """
    GET /api/health
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'status': 'ok'})
