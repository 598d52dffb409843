from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class RefreshTokenDto:
    id: str
    user_id: str
    token: str
    expires_at: datetime
    revoked_at: Optional[datetime]
    created_at: datetime


class RefreshTokenRepository(Protocol):
    def create(self, user_id: str, token: str, created_at: datetime, expires_at: datetime) -> RefreshTokenDto:
        ...

    def find_active(self, token: str) -> Optional[RefreshTokenDto]:
        ...

    def revoke(self, token_id: str, revoked_at: datetime) -> None:
        ...

    def revoke_for_user(self, user_id: str, token: str, revoked_at: datetime) -> int:
        ...
