from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlmodel import Session, select

from .....db.models import OtpVerification
from .....application.ports.otp_repo import OtpRepository, OtpRecordDto


class SqlOtpRepository(OtpRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, rec: OtpVerification) -> OtpRecordDto:
        return OtpRecordDto(
            id=rec.id,
            phone=rec.phone,
            otp=rec.otp,
            is_verified=rec.is_verified,
            expires_at=rec.expires_at,
            created_at=rec.created_at,
        )

    def create(self, phone: str, otp: str, created_at: datetime, expires_at: datetime) -> OtpRecordDto:
        rec = OtpVerification(phone=phone, otp=otp, created_at=created_at, expires_at=expires_at)
        self.session.add(rec)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(rec)
        return self._to_dto(rec)

    def count_created_since(self, phone: str, since: datetime) -> int:
        stmt = select(func.count()).select_from(OtpVerification).where(
            OtpVerification.phone == phone,
            OtpVerification.created_at >= since,
        )
        return int(self.session.exec(stmt).one())

    def latest_unverified(self, phone: str) -> Optional[OtpRecordDto]:
        rec = self.session.exec(
            select(OtpVerification)
            .where(OtpVerification.phone == phone, OtpVerification.is_verified == False)  # noqa: E712
            .order_by(OtpVerification.created_at.desc())
        ).first()
        return self._to_dto(rec) if rec else None

    def mark_verified(self, otp_id: str) -> None:
        rec = self.session.get(OtpVerification, otp_id)
        if not rec:
            return
        rec.is_verified = True
        self.session.add(rec)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def consume(self, otp_id: str, otp: str) -> bool:
        # Single conditional UPDATE so two concurrent verifications cannot both win
        stmt = (
            update(OtpVerification)
            .where(
                OtpVerification.id == otp_id,
                OtpVerification.otp == otp,
                OtpVerification.is_verified == False,  # noqa: E712
            )
            .values(is_verified=True)
        )
        try:
            result = self.session.exec(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount == 1
