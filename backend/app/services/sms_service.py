"""Service for sending SMS via Twilio."""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Optional

from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from app.core.config import settings

logger = logging.getLogger(__name__)

MAX_SMS_LENGTH = 1600


class SMSStatus(str, Enum):
    SUCCESS = "success"
    DISABLED = "disabled"
    ERROR = "error"


class SMSService:
    """Service for sending SMS via Twilio."""

    def __init__(self, client: Optional[Client] = None) -> None:
        auth_token = (
            settings.twilio_auth_token.get_secret_value() if settings.twilio_auth_token else ""
        )
        self.from_number = settings.twilio_phone_number
        self.enabled = bool(
            settings.sms_enabled
            and settings.notifications_enabled
            and (client is not None or (settings.twilio_account_sid and auth_token))
            and self.from_number
        )

        if client is not None:
            self.client: Optional[Client] = client
        elif self.enabled:
            self.client = Client(settings.twilio_account_sid, auth_token)
        else:
            self.client = None
            logger.info("SMS service disabled - Twilio credentials not configured")

    def send_sms_with_status(
        self, to_number: Optional[str], message: str
    ) -> tuple[Optional[dict[str, Any]], SMSStatus]:
        """
        Send an SMS message.

        Args:
            to_number: Recipient phone number in E.164 format (+1234567890)
            message: Message body (truncated past 1600 chars)
        """
        if not self.enabled or self.client is None:
            logger.debug("SMS disabled, would send to %s", to_number)
            return None, SMSStatus.DISABLED

        if not to_number or not to_number.startswith("+"):
            logger.warning("Invalid phone number format: %s", to_number)
            return None, SMSStatus.ERROR

        if len(message) > MAX_SMS_LENGTH:
            message = message[: MAX_SMS_LENGTH - 3] + "..."

        try:
            twilio_message = self.client.messages.create(
                body=message, to=to_number, from_=self.from_number
            )
        except TwilioRestException as exc:
            logger.error("Twilio error sending SMS to %s: %s", to_number, exc)
            return None, SMSStatus.ERROR

        logger.info("SMS sent to %s, SID: %s", to_number, twilio_message.sid)
        return (
            {
                "sid": twilio_message.sid,
                "status": getattr(twilio_message, "status", None),
                "to": to_number,
            },
            SMSStatus.SUCCESS,
        )
