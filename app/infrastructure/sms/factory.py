import logging

from ...application.ports.sms_sender import SmsSender
from ...core.config import Settings
from .mock_sender import MockSmsSender

logger = logging.getLogger(__name__)


def build_sms_sender(settings: Settings) -> SmsSender:
    if settings.SMS_PROVIDER == "twilio":
        from .twilio_sender import TwilioSmsSender

        logger.info("Using Twilio SMS sender")
        return TwilioSmsSender(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_PHONE_NUMBER,
        )
    logger.info("Using mock SMS sender")
    return MockSmsSender()
