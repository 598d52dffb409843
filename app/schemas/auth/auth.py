# app/schemas/auth.py
from pydantic import Field
from typing import Optional

from ..common.common import CamelModel
from ..users.user import UserResponse


# Format checks for phone/otp live in the OTP service so the API and the
# service report the same messages.
class SendOTPRequest(CamelModel):
    phone: Optional[str] = Field(None, description="10 digit mobile number")


class SendOTPResponse(CamelModel):
    success: bool
    message: str
    expires_in: int = Field(..., description="Seconds until the code expires (0 on failure)")


class VerifyOTPRequest(CamelModel):
    phone: Optional[str] = Field(None, description="10 digit mobile number")
    otp: Optional[str] = Field(None, description="4-6 digit code")


class VerifyOTPResponse(CamelModel):
    success: bool = True
    is_new_user: bool
    access_token: str
    refresh_token: str
    user: Optional[UserResponse] = Field(None, description="Null until the profile is completed")


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class RefreshTokenResponse(CamelModel):
    success: bool = True
    access_token: str
    refresh_token: str


class LogoutRequest(CamelModel):
    refresh_token: Optional[str] = None
