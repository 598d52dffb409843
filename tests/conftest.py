import os
from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

# Settings refuse to load without a signing secret
os.environ.setdefault("JWT_SECRET", "conftest-signing-secret-0123456789abcdef")

from app.database import build_engine, create_db_and_tables  # noqa: E402


class FakeClock:
    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingAudit:
    def __init__(self):
        self.events = []

    def log(self, action, phone=None, user_id=None, success=True, details=None):
        self.events.append({"action": action, "phone": phone, "user_id": user_id, "success": success, "details": details or {}})

    def actions(self):
        return [e["action"] for e in self.events]


class FakeSms:
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent = []

    def send_otp(self, phone: str, code: str) -> bool:
        self.sent.append((phone, code))
        return self.ok

    def last_code(self, phone: str) -> str:
        return [code for p, code in self.sent if p == phone][-1]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def audit():
    return RecordingAudit()


@pytest.fixture
def sms():
    return FakeSms()


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_db_and_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def failing_sms():
    return FakeSms(ok=False)
