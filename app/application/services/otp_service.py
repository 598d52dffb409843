import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from ..ports.otp_repo import OtpRepository, OtpRecordDto
from ..ports.sms_sender import SmsSender
from ..ports.audit_logger import AuditLogger
from ...exceptions import AuthenticationError, DatabaseError, ValidationError
from ...utils import generate_otp, utcnow

logger = logging.getLogger(__name__)

PHONE_RE = re.compile(r"^\d{10}$")
OTP_RE = re.compile(r"^\d{4,6}$")

RATE_LIMITED_MESSAGE = "Too many OTP requests. Please try after 1 hour."
DELIVERY_FAILED_MESSAGE = "Failed to send OTP. Please try again."


@dataclass
class SendOtpResult:
    success: bool
    message: str
    expires_in: int
    rate_limited: bool = False


def validate_phone(phone: Optional[str]) -> str:
    if not phone or not PHONE_RE.match(phone):
        raise ValidationError("Invalid phone number format")
    return phone


@dataclass
class OtpService:
    otp_repo: OtpRepository
    sms_sender: SmsSender
    audit: Optional[AuditLogger] = None
    otp_length: int = 4
    ttl: timedelta = timedelta(minutes=5)
    rate_limit_max: int = 3
    rate_limit_window: timedelta = timedelta(hours=1)
    single_use: bool = True
    test_phone_otps: Dict[str, str] = field(default_factory=dict)
    clock: Callable[[], datetime] = utcnow

    def _code_for(self, phone: str) -> str:
        return self.test_phone_otps.get(phone) or generate_otp(self.otp_length)

    def send_otp(self, phone: Optional[str]) -> SendOtpResult:
        phone = validate_phone(phone)
        now = self.clock()

        try:
            recent = self.otp_repo.count_created_since(phone, now - self.rate_limit_window)
        except Exception as e:
            logger.error(f"Error checking OTP rate limit: {e}")
            raise DatabaseError("Failed to check rate limit")

        if recent >= self.rate_limit_max:
            logger.warning(f"OTP rate limit reached for phone ending {phone[-4:]}")
            return SendOtpResult(success=False, message=RATE_LIMITED_MESSAGE, expires_in=0, rate_limited=True)

        code = self._code_for(phone)
        expires_at = now + self.ttl
        try:
            self.otp_repo.create(phone, code, created_at=now, expires_at=expires_at)
        except Exception as e:
            logger.error(f"Database error creating OTP: {e}")
            raise DatabaseError("Failed to create OTP record")

        # The row is kept even when delivery fails
        if not self.sms_sender.send_otp(phone, code):
            logger.warning(f"OTP delivery failed for phone ending {phone[-4:]}")
            return SendOtpResult(success=False, message=DELIVERY_FAILED_MESSAGE, expires_in=0)

        expires_in = int((expires_at - now).total_seconds())
        logger.info(f"OTP sent to phone ending {phone[-4:]}")
        return SendOtpResult(success=True, message="OTP sent successfully", expires_in=expires_in)

    def verify_otp(self, phone: Optional[str], otp: Optional[str]) -> OtpRecordDto:
        """Check the latest pending code for phone and mark it verified.

        Raises ValidationError for malformed input and AuthenticationError when
        there is no pending code, the code does not match, or it has expired
        (checked in that order).
        """
        if not phone or not otp:
            raise ValidationError("Phone number and OTP are required")
        validate_phone(phone)
        if not OTP_RE.match(otp):
            raise ValidationError("Invalid OTP format")

        try:
            record = self.otp_repo.latest_unverified(phone)
        except Exception as e:
            logger.error(f"Error fetching OTP record: {e}")
            raise DatabaseError("Failed to verify OTP")

        if record is None:
            raise AuthenticationError("No OTP found for this phone number")
        if record.otp != otp:
            raise AuthenticationError("Invalid OTP")
        if self.clock() > record.expires_at:
            raise AuthenticationError("OTP has expired")

        if self.single_use:
            try:
                consumed = self.otp_repo.consume(record.id, otp)
            except Exception as e:
                logger.error(f"Error consuming OTP: {e}")
                raise DatabaseError("Failed to verify OTP")
            if not consumed:
                raise AuthenticationError("OTP has already been used")
        else:
            try:
                self.otp_repo.mark_verified(record.id)
            except Exception as e:
                # The code already matched; losing the flag only leaves it reusable until expiry
                logger.warning(f"Error marking OTP {record.id} verified: {e}")
                if self.audit:
                    self.audit.log("secondary_write_failed", phone=phone, success=False,
                                   details={"write": "otp_mark_verified", "otp_id": record.id, "error": str(e)})

        record.is_verified = True
        return record
