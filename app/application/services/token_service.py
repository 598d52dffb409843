import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..ports.refresh_token_repo import RefreshTokenRepository
from ..ports.user_repo import UserRepository, UserDto
from ..ports.audit_logger import AuditLogger
from .credentials import CredentialIssuer, REFRESH
from ...exceptions import (
    AuthenticationError,
    DatabaseError,
    TokenExpiredError,
    ValidationError,
)
from ...utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass
class TokenService:
    """Refresh-token store lifecycle: issue, rotate, revoke."""

    refresh_repo: RefreshTokenRepository
    user_repo: UserRepository
    issuer: CredentialIssuer
    audit: Optional[AuditLogger] = None
    refresh_ttl: timedelta = timedelta(days=30)
    clock: Callable[[], datetime] = utcnow

    def _secondary_write_failed(self, write: str, user_id: str, error: Exception) -> None:
        logger.warning(f"Secondary write '{write}' failed for user {user_id}: {error}")
        if self.audit:
            self.audit.log("secondary_write_failed", user_id=user_id, success=False,
                           details={"write": write, "error": str(error)})

    def _mint(self, user: UserDto) -> TokenPair:
        return TokenPair(
            access_token=self.issuer.issue_access_token(user.id, user.phone),
            refresh_token=self.issuer.issue_refresh_token(user.id, user.phone),
        )

    def issue_session(self, user: UserDto) -> TokenPair:
        pair = self._mint(user)
        now = self.clock()
        try:
            self.refresh_repo.create(user.id, pair.refresh_token, created_at=now, expires_at=now + self.refresh_ttl)
        except Exception as e:
            # Tokens are already minted; the client just cannot refresh this one later
            self._secondary_write_failed("refresh_token_create", user.id, e)
        return pair

    def refresh(self, presented: Optional[str]) -> TokenPair:
        if not presented:
            raise ValidationError("Refresh token is required")

        try:
            self.issuer.verify(presented, expected_type=REFRESH)
        except TokenExpiredError:
            raise AuthenticationError("Refresh token has expired")
        except AuthenticationError:
            raise AuthenticationError("Invalid refresh token")

        record = self.refresh_repo.find_active(presented)
        if record is None:
            raise AuthenticationError("Invalid refresh token")

        user = self.user_repo.get_by_id(record.user_id)
        if user is None:
            raise AuthenticationError("User associated with token not found")

        now = self.clock()
        if now > record.expires_at:
            raise AuthenticationError("Refresh token has expired")

        pair = self._mint(user)

        try:
            self.refresh_repo.revoke(record.id, now)
        except Exception as e:
            self._secondary_write_failed("refresh_token_revoke", user.id, e)

        try:
            self.refresh_repo.create(user.id, pair.refresh_token, created_at=now, expires_at=now + self.refresh_ttl)
        except Exception as e:
            logger.error(f"Error storing new refresh token for user {user.id}: {e}")
            raise DatabaseError("Failed to store new refresh token")

        return pair

    def revoke(self, user_id: Optional[str], refresh_token: Optional[str]) -> int:
        if not user_id or not refresh_token:
            raise ValidationError("User ID and refresh token are required")
        try:
            count = self.refresh_repo.revoke_for_user(user_id, refresh_token, self.clock())
        except Exception as e:
            # Logout never blocks the client from clearing its local state
            self._secondary_write_failed("refresh_token_logout_revoke", user_id, e)
            return 0
        if count == 0:
            logger.warning(f"No active refresh token found for user {user_id}")
        return count
