from datetime import datetime, timedelta

from sqlalchemy import DateTime

from app.database import build_engine, check_database_connection
from app.db.models import OtpVerification, RefreshToken, User
from app.infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository


class FlakyEngine:
    def __init__(self, failures: int, engine=None):
        self.failures = failures
        self.calls = 0
        self.engine = engine

    def connect(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("connection refused")
        return self.engine.connect()


def test_connection_check_succeeds_first_time(engine):
    slept = []
    assert check_database_connection(engine, sleep=slept.append) is True
    assert slept == []


def test_connection_check_backs_off_then_gives_up():
    slept = []
    flaky = FlakyEngine(failures=10)
    assert check_database_connection(flaky, attempts=3, sleep=slept.append) is False
    assert flaky.calls == 3
    assert slept == [1, 2]


def test_connection_check_recovers_after_transient_failure():
    slept = []
    flaky = FlakyEngine(failures=1, engine=build_engine("sqlite://"))
    assert check_database_connection(flaky, attempts=3, sleep=slept.append) is True
    assert slept == [1]


def test_timestamp_columns_store_naive_utc(session):
    for table in (OtpVerification, RefreshToken, User):
        for column in table.__table__.columns:
            if isinstance(column.type, DateTime):
                assert column.type.timezone is False, f"{table.__tablename__}.{column.name}"

    repo = SqlOtpRepository(session)
    now = datetime(2024, 1, 1, 12, 0, 0)
    repo.create("9876543210", "1234", created_at=now, expires_at=now + timedelta(minutes=5))

    assert repo.count_created_since("9876543210", now - timedelta(hours=1)) == 1
    latest = repo.latest_unverified("9876543210")
    assert latest.expires_at == now + timedelta(minutes=5)
    assert latest.expires_at.tzinfo is None
