import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ...exceptions import InvalidTokenError, TokenExpiredError

ACCESS = "access"
REFRESH = "refresh"


@dataclass
class TokenClaims:
    user_id: str
    phone: str
    token_type: str
    jti: str
    expires_at: datetime


@dataclass
class CredentialIssuer:
    """Mints and verifies signed access/refresh tokens.

    Both kinds share the secret and algorithm. They differ by TTL and by the
    signed ``type`` claim, which ``verify`` checks so that a refresh token is
    never accepted where an access token is expected (and vice versa).
    """

    secret: str
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=30)
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("JWT secret is not configured")

    def _issue(self, user_id: str, phone: str, token_type: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "phone": phone,
            "type": token_type,
            # Unique per token so two tokens minted in the same second still differ
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def issue_access_token(self, user_id: str, phone: str) -> str:
        return self._issue(user_id, phone, ACCESS, self.access_ttl)

    def issue_refresh_token(self, user_id: str, phone: str) -> str:
        return self._issue(user_id, phone, REFRESH, self.refresh_ttl)

    def verify(self, token: str, expected_type: Optional[str] = None) -> TokenClaims:
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub", "type"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError:
            raise InvalidTokenError()

        token_type = payload.get("type")
        if token_type not in (ACCESS, REFRESH):
            raise InvalidTokenError()
        if expected_type is not None and token_type != expected_type:
            raise InvalidTokenError()

        return TokenClaims(
            user_id=str(payload["sub"]),
            phone=payload.get("phone", ""),
            token_type=token_type,
            jti=payload.get("jti", ""),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
