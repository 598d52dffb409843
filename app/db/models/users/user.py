# app/db/models/users/user.py
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime
import uuid

from app.utils import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    phone: str = Field(max_length=10, unique=True, index=True)
    # Empty name means the profile has not been completed yet
    name: str = Field(default="", max_length=255)
    email: Optional[str] = Field(max_length=255, default=None)
    profile_picture_url: Optional[str] = Field(max_length=500, default=None)
    bio: Optional[str] = Field(max_length=500, default=None)
    address: str = Field(default="")
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=100)
    pincode: str = Field(default="", max_length=6)
    latitude: Optional[float] = Field(default=None)
    longitude: Optional[float] = Field(default=None)
    is_available: bool = Field(default=True)
    experience_years: int = Field(default=0)
    labour_type: str = Field(default="", max_length=20)
    rating: float = Field(default=0)
    total_reviews: int = Field(default=0)
    is_verified: bool = Field(default=False)
    last_login_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
