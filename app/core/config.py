# app/core/config.py
from datetime import timedelta
from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.utils import parse_duration


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application Settings
    APP_NAME: str = "Rozgar360 API"
    APP_VERSION: str = "1.0.0"
    ENV: str = "development"
    API_PREFIX: str = "/api/v1"
    DOCS_ENABLED: bool = True

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database Settings
    DATABASE_URL: str = "sqlite:///./rozgar360.db"
    DB_CONNECT_ATTEMPTS: int = 3
    DB_ECHO: bool = False

    # Security Settings (no default for the secret: startup fails closed)
    JWT_SECRET: str = Field(..., min_length=1)
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRY: str = "15m"
    JWT_REFRESH_EXPIRY: str = "30d"

    # OTP Settings
    OTP_LENGTH: int = Field(default=4, ge=4, le=6)
    OTP_EXPIRY_MINUTES: int = 5
    OTP_RATE_LIMIT_MAX: int = 3
    OTP_RATE_LIMIT_WINDOW_MINUTES: int = 60
    OTP_SINGLE_USE: bool = True
    # Demo/QA numbers that always receive the same code
    OTP_TEST_PHONES: str = "3295004997:3297,4997003295:4932"

    # SMS Settings
    SMS_PROVIDER: str = "mock"
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_PHONE_NUMBER: str = ""

    # CORS Settings
    ALLOWED_ORIGINS: str = "*"

    # Rate Limiting (transport level, per client IP)
    RATE_LIMIT_WINDOW_SEC: int = 900
    RATE_LIMIT_MAX_REQUESTS: int = 100
    REDIS_URL: Optional[str] = None

    # Logging Settings
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @field_validator("JWT_ACCESS_EXPIRY", "JWT_REFRESH_EXPIRY")
    @classmethod
    def validate_expiry(cls, v: str) -> str:
        parse_duration(v)
        return v

    @field_validator("SMS_PROVIDER")
    @classmethod
    def validate_sms_provider(cls, v: str) -> str:
        v = v.lower()
        if v not in ("mock", "twilio"):
            raise ValueError("SMS_PROVIDER must be 'mock' or 'twilio'")
        return v

    @property
    def DEBUG(self) -> bool:
        return self.ENV != "production"

    @property
    def access_token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_ACCESS_EXPIRY)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return parse_duration(self.JWT_REFRESH_EXPIRY)

    @property
    def otp_ttl(self) -> timedelta:
        return timedelta(minutes=self.OTP_EXPIRY_MINUTES)

    @property
    def otp_rate_limit_window(self) -> timedelta:
        return timedelta(minutes=self.OTP_RATE_LIMIT_WINDOW_MINUTES)

    @property
    def test_phone_otps(self) -> Dict[str, str]:
        pairs = {}
        for item in self._split_csv(self.OTP_TEST_PHONES):
            phone, _, code = item.partition(":")
            if phone and code:
                pairs[phone.strip()] = code.strip()
        return pairs

    # Helper methods for list envs
    def _split_csv(self, value: Optional[str]) -> List[str]:
        if value is None:
            return []
        value = value.strip()
        if value == "":
            return []
        return [item.strip() for item in value.split(",")]

    @property
    def allowed_origins_list(self) -> List[str]:
        return self._split_csv(self.ALLOWED_ORIGINS)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
