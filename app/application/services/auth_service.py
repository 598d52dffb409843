import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from ..ports.user_repo import UserRepository, UserDto
from ..ports.audit_logger import AuditLogger
from .otp_service import OtpService, SendOtpResult
from .token_service import TokenService, TokenPair
from ...exceptions import DatabaseError
from ...utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    is_new_user: bool
    access_token: str
    refresh_token: str
    # None until the profile is completed
    user: Optional[UserDto]


@dataclass
class AuthService:
    otp_service: OtpService
    token_service: TokenService
    user_repo: UserRepository
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = utcnow

    def _audit(self, action: str, **kwargs) -> None:
        if self.audit:
            self.audit.log(action, **kwargs)

    def send_otp(self, phone: Optional[str]) -> SendOtpResult:
        result = self.otp_service.send_otp(phone)
        if result.success:
            self._audit("otp_sent", phone=phone)
        elif result.rate_limited:
            self._audit("otp_rate_limited", phone=phone, success=False)
        else:
            self._audit("otp_delivery_failed", phone=phone, success=False)
        return result

    def _resolve_user(self, phone: str) -> tuple:
        now = self.clock()
        try:
            user = self.user_repo.get_by_phone(phone)
        except Exception as e:
            logger.error(f"Error fetching user: {e}")
            raise DatabaseError("Failed to retrieve user data")

        if user is None:
            try:
                user = self.user_repo.create_for_phone(phone, last_login_at=now)
            except Exception as e:
                logger.error(f"Error creating user: {e}")
                raise DatabaseError("Failed to create user account")
            return user, True

        try:
            user = self.user_repo.touch_last_login(user.id, now)
        except Exception as e:
            # Continue with the user data already fetched
            logger.warning(f"Error updating last login for user {user.id}: {e}")
            if self.audit:
                self.audit.log("secondary_write_failed", phone=phone, user_id=user.id, success=False,
                               details={"write": "user_last_login", "error": str(e)})
        return user, False

    def verify_otp(self, phone: Optional[str], otp: Optional[str]) -> LoginResult:
        self.otp_service.verify_otp(phone, otp)
        user, is_new_user = self._resolve_user(phone)
        tokens = self.token_service.issue_session(user)

        logger.info(f"User {user.id} logged in (new user: {is_new_user})")
        self._audit("login", phone=phone, user_id=user.id, details={"is_new_user": is_new_user})
        return LoginResult(
            is_new_user=is_new_user,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            user=user if user.profile_completed else None,
        )

    def refresh_access_token(self, refresh_token: Optional[str]) -> TokenPair:
        pair = self.token_service.refresh(refresh_token)
        self._audit("token_refreshed")
        return pair

    def logout(self, user_id: Optional[str], refresh_token: Optional[str]) -> None:
        revoked = self.token_service.revoke(user_id, refresh_token)
        logger.info(f"User {user_id} logged out")
        self._audit("logout", user_id=user_id, details={"revoked": revoked})
