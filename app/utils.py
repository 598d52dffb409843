import hashlib
import re
import secrets
from datetime import datetime, timedelta, timezone

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhdw])\s*$")
_DURATION_UNITS = {
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


# =========================
# Time helpers
# =========================
def utcnow() -> datetime:
    """Naive UTC timestamp. Every table declares plain timezone-less DateTime columns for it."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_duration(value: str) -> timedelta:
    """Parse expiry strings like "15m", "12h" or "30d" into a timedelta."""
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration '{value}'. Use <number><s|m|h|d|w>, e.g. 15m or 30d")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


# =========================
# OTP Generation
# =========================
def generate_otp(length: int = 4) -> str:
    """Generate a uniformly random numeric OTP of the given length."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256(phone.encode()).hexdigest()
