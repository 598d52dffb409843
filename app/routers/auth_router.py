import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..application.services.auth_service import AuthService
from ..application.services.credentials import TokenClaims
from ..dependencies import get_auth_service, get_current_claims
from ..exceptions import AuthenticationError, ValidationError
from ..schemas import (
    LogoutRequest,
    MessageResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SendOTPRequest,
    SendOTPResponse,
    UserResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/send-otp", response_model=SendOTPResponse)
def send_otp(payload: SendOTPRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.send_otp(payload.phone)
    body = SendOTPResponse(success=result.success, message=result.message, expires_in=result.expires_in)
    if not result.success:
        # Soft failures keep the success-shaped body; only the status differs
        status_code = 429 if result.rate_limited else 400
        return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))
    return body


@router.post("/verify-otp", response_model=VerifyOTPResponse)
def verify_otp(payload: VerifyOTPRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        result = auth.verify_otp(payload.phone, payload.otp)
    except (ValidationError, AuthenticationError) as e:
        logger.info(f"Verify OTP rejected: {e.message}")
        raise HTTPException(status_code=400, detail=e.message)
    return VerifyOTPResponse(
        is_new_user=result.is_new_user,
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserResponse.from_dto(result.user) if result.user else None,
    )


@router.post("/refresh-token", response_model=RefreshTokenResponse)
def refresh_token(payload: RefreshTokenRequest, auth: AuthService = Depends(get_auth_service)):
    pair = auth.refresh_access_token(payload.refresh_token)
    return RefreshTokenResponse(access_token=pair.access_token, refresh_token=pair.refresh_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    payload: LogoutRequest,
    claims: TokenClaims = Depends(get_current_claims),
    auth: AuthService = Depends(get_auth_service),
):
    auth.logout(claims.user_id, payload.refresh_token)
    return MessageResponse(message="Logged out successfully")
