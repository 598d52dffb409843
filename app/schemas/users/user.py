# app/schemas/user.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, Field, field_validator

from ..common.common import CamelModel
from ...application.ports.user_repo import UserDto

LabourType = Literal["daily", "monthly", "partTime", "fullTime", "contract", "freelance"]


def _blank_email_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class UserResponse(CamelModel):
    id: str
    phone: str
    email: Optional[str] = None
    name: str
    profile_picture_url: Optional[str] = None
    bio: Optional[str] = None
    address: str
    city: str
    state: str
    pincode: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_available: bool
    skills: List[str] = []
    experience_years: int
    labour_type: str
    rating: float = 0
    total_reviews: int = 0
    is_verified: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dto(cls, user: UserDto) -> "UserResponse":
        return cls(
            id=user.id,
            phone=user.phone,
            email=user.email or None,
            name=user.name,
            profile_picture_url=user.profile_picture_url,
            bio=user.bio or None,
            address=user.address,
            city=user.city,
            state=user.state,
            pincode=user.pincode,
            latitude=user.latitude,
            longitude=user.longitude,
            is_available=user.is_available,
            skills=user.skills,
            experience_years=user.experience_years,
            labour_type=user.labour_type,
            rating=user.rating or 0,
            total_reviews=user.total_reviews or 0,
            is_verified=user.is_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class CompleteProfileRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=255, description="User's full name")
    email: Optional[EmailStr] = None
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., pattern=r"^\d{6}$", description="6 digit PIN code")
    bio: Optional[str] = Field(None, max_length=500)
    is_available: bool
    skills: List[str] = Field(..., min_length=1, description="At least one skill")
    experience_years: int = Field(..., ge=0, le=50)
    labour_type: LabourType
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return _blank_email_to_none(v)


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(None, pattern=r"^\d{6}$")
    bio: Optional[str] = Field(None, max_length=500)
    is_available: Optional[bool] = None
    skills: Optional[List[str]] = None
    experience_years: Optional[int] = Field(None, ge=0, le=50)
    labour_type: Optional[LabourType] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)

    @field_validator("email", mode="before")
    @classmethod
    def empty_email_is_none(cls, v):
        return _blank_email_to_none(v)


class AvailabilityRequest(CamelModel):
    is_available: Optional[bool] = None


class ProfileResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


class AvailabilityResponse(CamelModel):
    success: bool = True
    message: str
    id: str
    is_available: bool
