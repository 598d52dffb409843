# app/db/models/auth/otp.py
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from app.utils import utcnow


class OtpVerification(SQLModel, table=True):
    __tablename__ = "otp_verifications"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    phone: str = Field(max_length=10, index=True)
    otp: str = Field(max_length=6)
    is_verified: bool = Field(default=False)
    expires_at: datetime = Field(sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, index=True)
