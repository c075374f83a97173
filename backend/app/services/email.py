# backend/app/services/email.py
"""
Email Service.

Sends transactional email through the Resend API. When no API key is
configured, or notifications are switched off, sends are skipped and logged.
"""

import logging
import re
from typing import Any, Dict, Optional

import resend

from ..core.config import settings
from ..core.exceptions import ServiceException
from .base import BaseService

logger = logging.getLogger(__name__)


class EmailService(BaseService):
    """Service for sending emails using Resend API."""

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        super().__init__(None)
        key = api_key if api_key is not None else settings.resend_api_key
        self.enabled = bool(key) and settings.notifications_enabled
        if key:
            resend.api_key = key
        else:
            self.logger.info("Email disabled - Resend API key not configured")
        self.from_email = from_email or settings.from_email

    @staticmethod
    def _html_to_text(html_content: str) -> str:
        """Plain text fallback for clients that do not render HTML."""
        text = re.sub(r"<[^>]+>", "", html_content)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Send an email.

        Returns the Resend response, or None when email is disabled.

        Raises:
            ServiceException: If Resend rejects the message
        """
        if not self.enabled:
            self.logger.debug(f"Email disabled, would send '{subject}' to {to_email}")
            return None

        email_data = {
            "from": self.from_email,
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content or self._html_to_text(html_content),
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            error_msg = str(e) or "Unknown error"
            self.logger.error(f"Failed to send email to {to_email}: {error_msg}")
            self.log_operation("email_failed", to_email=to_email, subject=subject, error=error_msg)
            raise ServiceException(f"Email sending failed: {error_msg}") from e

        self.log_operation("email_sent", to_email=to_email, subject=subject)
        return response
