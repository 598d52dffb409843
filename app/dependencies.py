"""Per-request service assembly.

Process-wide collaborators (settings, engine, credential issuer, SMS sender,
audit logger, rate limiter) live on ``app.state`` and are created by
``create_app``; everything bound to a database session is built here for the
duration of one request.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from .application.services.auth_service import AuthService
from .application.services.credentials import ACCESS, CredentialIssuer, TokenClaims
from .application.services.otp_service import OtpService
from .application.services.profile_service import ProfileService
from .application.services.token_service import TokenService
from .core.config import Settings
from .database import get_session
from .exceptions import AuthenticationError
from .infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from .infrastructure.persistence.sqlalchemy.repositories.refresh_token_repository_sql import SqlRefreshTokenRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository

logger = logging.getLogger(__name__)

# Auth scheme
bearer_scheme = HTTPBearer(auto_error=False)


def get_issuer(request: Request) -> CredentialIssuer:
    return request.app.state.issuer


def get_otp_service(request: Request, session: Session = Depends(get_session)) -> OtpService:
    settings: Settings = request.app.state.settings
    return OtpService(
        otp_repo=SqlOtpRepository(session),
        sms_sender=request.app.state.sms_sender,
        audit=request.app.state.audit,
        otp_length=settings.OTP_LENGTH,
        ttl=settings.otp_ttl,
        rate_limit_max=settings.OTP_RATE_LIMIT_MAX,
        rate_limit_window=settings.otp_rate_limit_window,
        single_use=settings.OTP_SINGLE_USE,
        test_phone_otps=settings.test_phone_otps,
    )


def get_token_service(request: Request, session: Session = Depends(get_session)) -> TokenService:
    return TokenService(
        refresh_repo=SqlRefreshTokenRepository(session),
        user_repo=SqlUserRepository(session),
        issuer=request.app.state.issuer,
        audit=request.app.state.audit,
        refresh_ttl=request.app.state.settings.refresh_token_ttl,
    )


def get_auth_service(
    request: Request,
    session: Session = Depends(get_session),
    otp_service: OtpService = Depends(get_otp_service),
    token_service: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(
        otp_service=otp_service,
        token_service=token_service,
        user_repo=SqlUserRepository(session),
        audit=request.app.state.audit,
    )


def get_profile_service(session: Session = Depends(get_session)) -> ProfileService:
    return ProfileService(user_repo=SqlUserRepository(session))


# Dependency to get the caller's identity from the Bearer access token
def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    issuer: CredentialIssuer = Depends(get_issuer),
) -> TokenClaims:
    if not credentials or not credentials.credentials:
        raise AuthenticationError("No token provided")
    try:
        return issuer.verify(credentials.credentials, expected_type=ACCESS)
    except AuthenticationError as e:
        logger.warning(f"Authentication error: {e.message}")
        raise


def get_current_user_id(claims: TokenClaims = Depends(get_current_claims)) -> str:
    return claims.user_id
