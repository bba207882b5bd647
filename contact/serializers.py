"""
Contact Serializers

Serializers for contact form submissions and the admin listing.
"""
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import EmailValidator
from django.utils.html import escape
from rest_framework import serializers

from .models import ContactMessage

MISSING_FIELDS_MESSAGE = 'Missing required fields.'
INVALID_EMAIL_MESSAGE = 'Please provide a valid email address'
EMAIL_TOO_LONG_MESSAGE = 'Email address is too long'
MESSAGE_LENGTH_MESSAGE = 'Message must be less than 1000 characters'
NAME_TOO_LONG_MESSAGE = 'Name must be 20 characters or fewer'
SUBJECT_TOO_LONG_MESSAGE = 'Subject must be 100 characters or fewer'


def _text_field(source=None):
    kwargs = {
        'required': False,
        'allow_blank': True,
        'allow_null': True,
        'trim_whitespace': True,
        # Non-text values (booleans, objects, arrays) count as not provided
        'error_messages': {'invalid': MISSING_FIELDS_MESSAGE},
    }
    if source:
        kwargs['source'] = source
    return serializers.CharField(**kwargs)


class ContactFormSubmitSerializer(serializers.Serializer):
    """
    Public contact form submission serializer.

    Checks run in a fixed order and stop at the first failure, so callers
    always get one specific message. The raw input is validated; the
    validated data holds the escaped form that gets emailed and stored.
    The ``company`` honeypot is handled by the view before this runs.
    """

    firstName = _text_field(source='first_name')
    lastName = _text_field(source='last_name')
    email = _text_field()
    subject = _text_field()
    message = _text_field()

    email_validator = EmailValidator()

    def validate(self, attrs):
        first_name = attrs.get('first_name')
        last_name = attrs.get('last_name')
        email = attrs.get('email')
        subject = attrs.get('subject')
        message = attrs.get('message')

        if not first_name or not last_name or not email or not message:
            raise serializers.ValidationError(MISSING_FIELDS_MESSAGE)

        try:
            self.email_validator(email)
        except DjangoValidationError:
            raise serializers.ValidationError(INVALID_EMAIL_MESSAGE)

        if len(email) > ContactMessage.EMAIL_MAX_LENGTH:
            raise serializers.ValidationError(EMAIL_TOO_LONG_MESSAGE)

        if len(message) > ContactMessage.MESSAGE_MAX_LENGTH:
            raise serializers.ValidationError(MESSAGE_LENGTH_MESSAGE)

        if (len(first_name) > ContactMessage.NAME_MAX_LENGTH
                or len(last_name) > ContactMessage.NAME_MAX_LENGTH):
            raise serializers.ValidationError(NAME_TOO_LONG_MESSAGE)

        if subject and len(subject) > ContactMessage.SUBJECT_MAX_LENGTH:
            raise serializers.ValidationError(SUBJECT_TOO_LONG_MESSAGE)

        # Escape markup; the address is left as-is so it stays deliverable
        return {
            'first_name': str(escape(first_name)),
            'last_name': str(escape(last_name)),
            'email': email,
            'subject': str(escape(subject)) if subject else None,
            'message': str(escape(message)),
        }

    @property
    def first_error(self):
        """The single error message to show the caller."""
        errors = self.errors
        if 'non_field_errors' in errors:
            return errors['non_field_errors'][0]
        for field_errors in errors.values():
            return field_errors[0]
        return MISSING_FIELDS_MESSAGE


class ContactMessageSerializer(serializers.ModelSerializer):
    """
    Serializer for stored messages in the admin listing.
    """

    class Meta:
        model = ContactMessage
        fields = [
            'id', 'first_name', 'last_name', 'email', 'subject',
            'message', 'ip_address', 'created_at'
        ]
        read_only_fields = fields
