from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from .....db.models import RefreshToken
from .....application.ports.refresh_token_repo import RefreshTokenRepository, RefreshTokenDto


class SqlRefreshTokenRepository(RefreshTokenRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: RefreshToken) -> RefreshTokenDto:
        return RefreshTokenDto(
            id=rec.id,
            user_id=rec.user_id,
            token=rec.token,
            expires_at=rec.expires_at,
            revoked_at=rec.revoked_at,
            created_at=rec.created_at,
        )

    def create(self, user_id: str, token: str, created_at: datetime, expires_at: datetime) -> RefreshTokenDto:
        rec = RefreshToken(user_id=user_id, token=token, created_at=created_at, expires_at=expires_at)
        self.session.add(rec)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(rec)
        return self._to_dto(rec)

    def find_active(self, token: str) -> Optional[RefreshTokenDto]:
        rec = self.session.exec(
            select(RefreshToken).where(RefreshToken.token == token, RefreshToken.revoked_at.is_(None))
        ).first()
        return self._to_dto(rec) if rec else None

    def revoke(self, token_id: str, revoked_at: datetime) -> None:
        rec = self.session.get(RefreshToken, token_id)
        if not rec:
            return
        rec.revoked_at = revoked_at
        self.session.add(rec)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def revoke_for_user(self, user_id: str, token: str, revoked_at: datetime) -> int:
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.token == token,
                RefreshToken.revoked_at.is_(None),
            )
            .values(revoked_at=revoked_at)
        )
        try:
            result = self.session.exec(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount
