from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol


@dataclass
class UserDto:
    id: str
    phone: str
    name: str
    email: Optional[str] = None
    profile_picture_url: Optional[str] = None
    bio: Optional[str] = None
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_available: bool = True
    skills: List[str] = field(default_factory=list)
    experience_years: int = 0
    labour_type: str = ""
    rating: float = 0
    total_reviews: int = 0
    is_verified: bool = False
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def profile_completed(self) -> bool:
        return bool(self.name and self.name.strip())


class UserRepository(Protocol):
    def get_by_phone(self, phone: str) -> Optional[UserDto]:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def create_for_phone(self, phone: str, last_login_at: datetime) -> UserDto:
        ...

    def touch_last_login(self, user_id: str, last_login_at: datetime) -> UserDto:
        ...

    def update_profile_fields(self, user_id: str, fields: Dict[str, Any]) -> None:
        ...

    def replace_skills(self, user_id: str, skills: List[str]) -> None:
        ...
