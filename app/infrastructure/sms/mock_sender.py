import logging

from ...application.ports.sms_sender import SmsSender

logger = logging.getLogger(__name__)


class MockSmsSender(SmsSender):
    """Development sender: writes the code to the log instead of sending it."""

    def send_otp(self, phone: str, code: str) -> bool:
        logger.info(f"[MOCK SMS] OTP for phone ending {phone[-4:]}: {code}")
        return True
