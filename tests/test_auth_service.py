import pytest

from app.application.services.auth_service import AuthService
from app.application.services.credentials import ACCESS, CredentialIssuer
from app.application.services.otp_service import OtpService
from app.application.services.token_service import TokenService
from app.exceptions import AuthenticationError, DatabaseError
from app.infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from app.infrastructure.persistence.sqlalchemy.repositories.refresh_token_repository_sql import SqlRefreshTokenRepository
from app.infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository

PHONE = "9876543210"


class FailingLookupUsers(SqlUserRepository):
    def get_by_phone(self, phone):
        raise RuntimeError("db down")


class FailingCreateUsers(SqlUserRepository):
    def create_for_phone(self, phone, last_login_at):
        raise RuntimeError("insert failed")


class FailingTouchUsers(SqlUserRepository):
    def touch_last_login(self, user_id, last_login_at):
        raise RuntimeError("update failed")


@pytest.fixture
def issuer():
    return CredentialIssuer("unit-test-signing-secret-0123456789")


@pytest.fixture
def build(session, sms, clock, audit, issuer):
    def _build(user_repo=None):
        users = user_repo or SqlUserRepository(session)
        otp = OtpService(otp_repo=SqlOtpRepository(session), sms_sender=sms, audit=audit, clock=clock)
        tokens = TokenService(
            refresh_repo=SqlRefreshTokenRepository(session),
            user_repo=users,
            issuer=issuer,
            audit=audit,
            clock=clock,
        )
        return AuthService(otp_service=otp, token_service=tokens, user_repo=users, audit=audit, clock=clock)

    return _build


def login(svc, sms):
    svc.send_otp(PHONE)
    return svc.verify_otp(PHONE, sms.last_code(PHONE))


def test_first_login_creates_user(build, sms, issuer, session, clock, audit):
    svc = build()
    result = login(svc, sms)
    assert result.is_new_user is True
    # Profile not completed yet
    assert result.user is None

    stored = SqlUserRepository(session).get_by_phone(PHONE)
    assert stored.last_login_at == clock.now
    assert issuer.verify(result.access_token, expected_type=ACCESS).user_id == stored.id
    assert audit.actions() == ["otp_sent", "login"]


def test_returning_user_with_profile(build, sms, session, clock):
    svc = build()
    first = login(svc, sms)
    users = SqlUserRepository(session)
    user = users.get_by_phone(PHONE)
    users.update_profile_fields(user.id, {"name": "Ravi Kumar"})

    clock.advance(minutes=2)
    second = login(svc, sms)
    assert first.is_new_user is True
    assert second.is_new_user is False
    assert second.user.id == user.id
    assert second.user.name == "Ravi Kumar"
    assert second.user.last_login_at == clock.now


def test_failed_verification_does_not_create_user(build, sms, session):
    svc = build()
    svc.send_otp(PHONE)
    wrong = "0000" if sms.last_code(PHONE) != "0000" else "1111"
    with pytest.raises(AuthenticationError):
        svc.verify_otp(PHONE, wrong)
    assert SqlUserRepository(session).get_by_phone(PHONE) is None


def test_send_otp_audits_rate_limit(build, sms, audit):
    svc = build()
    for _ in range(4):
        svc.send_otp(PHONE)
    assert audit.actions() == ["otp_sent"] * 3 + ["otp_rate_limited"]


def test_user_lookup_failure_is_fatal(build, sms, session):
    svc = build(FailingLookupUsers(session))
    svc.send_otp(PHONE)
    with pytest.raises(DatabaseError) as exc:
        svc.verify_otp(PHONE, sms.last_code(PHONE))
    assert exc.value.message == "Failed to retrieve user data"


def test_user_create_failure_is_fatal(build, sms, session):
    svc = build(FailingCreateUsers(session))
    svc.send_otp(PHONE)
    with pytest.raises(DatabaseError) as exc:
        svc.verify_otp(PHONE, sms.last_code(PHONE))
    assert exc.value.message == "Failed to create user account"


def test_last_login_failure_is_tolerated(build, sms, session, audit):
    SqlUserRepository(session).create_for_phone(PHONE, last_login_at=None)
    svc = build(FailingTouchUsers(session))
    result = login(svc, sms)
    assert result.is_new_user is False
    assert "secondary_write_failed" in audit.actions()


def test_refresh_and_logout(build, sms, session, audit):
    svc = build()
    result = login(svc, sms)
    pair = svc.refresh_access_token(result.refresh_token)
    user_id = SqlUserRepository(session).get_by_phone(PHONE).id

    svc.logout(user_id, pair.refresh_token)
    assert SqlRefreshTokenRepository(session).find_active(pair.refresh_token) is None
    assert audit.actions()[-2:] == ["token_refreshed", "logout"]
    assert audit.events[-1]["details"] == {"revoked": 1}
