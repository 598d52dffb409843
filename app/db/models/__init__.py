# Models package (re-export feature modules for stable imports)
from .users.user import User
from .users.skill import UserSkill
from .auth.otp import OtpVerification
from .auth.refresh_token import RefreshToken

__all__ = [
    "User",
    "UserSkill",
    "OtpVerification",
    "RefreshToken",
]
