from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from .....db.models import User, UserSkill
from .....application.ports.user_repo import UserRepository, UserDto
from .....utils import utcnow


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _skills(self, user_id: str) -> List[str]:
        return list(self.session.exec(
            select(UserSkill.skill).where(UserSkill.user_id == user_id).order_by(UserSkill.skill)
        ).all())

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            phone=user.phone,
            name=user.name,
            email=user.email,
            profile_picture_url=user.profile_picture_url,
            bio=user.bio,
            address=user.address,
            city=user.city,
            state=user.state,
            pincode=user.pincode,
            latitude=user.latitude,
            longitude=user.longitude,
            is_available=user.is_available,
            skills=self._skills(user.id),
            experience_years=user.experience_years,
            labour_type=user.labour_type,
            rating=user.rating,
            total_reviews=user.total_reviews,
            is_verified=user.is_verified,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def get_by_phone(self, phone: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.phone == phone)).first()
        return self._to_dto(user) if user else None

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        return self._to_dto(user) if user else None

    def create_for_phone(self, phone: str, last_login_at: datetime) -> UserDto:
        user = User(phone=phone, last_login_at=last_login_at)
        self.session.add(user)
        self._commit()
        self.session.refresh(user)
        return self._to_dto(user)

    def touch_last_login(self, user_id: str, last_login_at: datetime) -> UserDto:
        user = self.session.get(User, user_id)
        if not user:
            raise LookupError(f"User {user_id} not found")
        user.last_login_at = last_login_at
        self.session.add(user)
        self._commit()
        self.session.refresh(user)
        return self._to_dto(user)

    def update_profile_fields(self, user_id: str, fields: Dict[str, Any]) -> None:
        user = self.session.get(User, user_id)
        if not user:
            return
        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = utcnow()
        self.session.add(user)
        self._commit()

    def replace_skills(self, user_id: str, skills: List[str]) -> None:
        self.session.exec(delete(UserSkill).where(UserSkill.user_id == user_id))
        for skill in dict.fromkeys(s.strip() for s in skills if s and s.strip()):
            self.session.add(UserSkill(user_id=user_id, skill=skill))
        self._commit()
