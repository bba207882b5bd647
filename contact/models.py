"""
Contact Models

Database schema for contact form submissions.
"""
from django.db import models


class ContactMessage(models.Model):
    """
    Contact form submission from the portfolio site.

    Text fields hold the HTML-escaped form of what was submitted, so their
    columns are wider than the accepted input lengths. Rows are written once
    and never updated.
    """

    # Accepted input lengths (before escaping)
    NAME_MAX_LENGTH = 20
    SUBJECT_MAX_LENGTH = 100
    EMAIL_MAX_LENGTH = 254
    MESSAGE_MAX_LENGTH = 1000

    id = models.BigAutoField(primary_key=True)

    first_name = models.CharField(
        max_length=120,
        help_text="Submitter's first name (escaped)"
    )

    last_name = models.CharField(
        max_length=120,
        help_text="Submitter's last name (escaped)"
    )

    email = models.EmailField(
        max_length=EMAIL_MAX_LENGTH,
        help_text="Submitter's email address"
    )

    subject = models.CharField(
        max_length=600,
        null=True,
        blank=True,
        help_text="Optional subject line (escaped)"
    )

    message = models.TextField(
        help_text="Message body (escaped)"
    )

    ip_address = models.CharField(
        max_length=45,
        null=True,
        blank=True,
        help_text="Source address of the submission (audit only)"
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the message was submitted"
    )

    class Meta:
        db_table = 'messages'
        ordering = ['-created_at', '-id']
        verbose_name = 'Contact Message'
        verbose_name_plural = 'Contact Messages'
        indexes = [
            models.Index(fields=['-created_at'], name='messages_created_at_desc_idx'),
            models.Index(fields=['email'], name='messages_email_idx'),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name} <{self.email}>"
