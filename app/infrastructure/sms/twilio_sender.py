import logging
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from ...application.ports.sms_sender import SmsSender

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATE = "Your Rozgar360 OTP is: {code}"


class TwilioSmsSender(SmsSender):
    def __init__(self, account_sid: str, auth_token: str, from_number: str,
                 client: Optional[Client] = None, country_code: str = "+91"):
        if not from_number:
            raise RuntimeError("Twilio phone number not configured")
        self.client = client or Client(
            account_sid,
            auth_token,
            http_client=TwilioHttpClient(timeout=15, max_retries=3),
        )
        self.from_number = from_number
        self.country_code = country_code

    def send_otp(self, phone: str, code: str) -> bool:
        to = phone if phone.startswith("+") else f"{self.country_code}{phone}"
        try:
            message = self.client.messages.create(
                body=MESSAGE_TEMPLATE.format(code=code),
                from_=self.from_number,
                to=to,
            )
        except TwilioException as e:
            logger.error(f"Twilio error sending OTP to phone ending {phone[-4:]}: {e}")
            return False
        except Exception as e:
            # Network errors from the HTTP client count as a failed delivery
            logger.error(f"Error sending OTP to phone ending {phone[-4:]}: {e}")
            return False
        logger.info(f"OTP sent to phone ending {phone[-4:]} via Twilio (sid={message.sid})")
        return True
