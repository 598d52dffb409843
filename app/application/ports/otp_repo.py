from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol


@dataclass
class OtpRecordDto:
    id: str
    phone: str
    otp: str
    is_verified: bool
    expires_at: datetime
    created_at: datetime


class OtpRepository(Protocol):
    def create(self, phone: str, otp: str, created_at: datetime, expires_at: datetime) -> OtpRecordDto:
        ...

    def count_created_since(self, phone: str, since: datetime) -> int:
        ...

    def latest_unverified(self, phone: str) -> Optional[OtpRecordDto]:
        ...

    def mark_verified(self, otp_id: str) -> None:
        ...

    def consume(self, otp_id: str, otp: str) -> bool:
        """Flip is_verified only if the row is still unverified and holds this code."""
        ...
