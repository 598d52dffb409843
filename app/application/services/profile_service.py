import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..ports.user_repo import UserRepository, UserDto
from ...exceptions import AppError, DatabaseError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "name",
    "email",
    "address",
    "city",
    "state",
    "pincode",
    "bio",
    "is_available",
    "experience_years",
    "labour_type",
    "latitude",
    "longitude",
)
NULLABLE_FIELDS = {"email", "bio", "latitude", "longitude"}


@dataclass
class ProfileService:
    user_repo: UserRepository

    def _require_user(self, user_id: str) -> UserDto:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def complete_profile(self, user_id: str, data: Dict[str, Any]) -> UserDto:
        try:
            user = self._require_user(user_id)
            if user.profile_completed:
                raise ValidationError("Profile already completed. Use update endpoint instead.")

            fields = {key: data.get(key) for key in PROFILE_FIELDS if key in data}
            self.user_repo.update_profile_fields(user_id, fields)
            skills: List[str] = data.get("skills") or []
            if skills:
                self.user_repo.replace_skills(user_id, skills)
            logger.info(f"Profile completed for user {user_id}")
            return self._require_user(user_id)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error completing profile: {e}")
            raise DatabaseError("Failed to complete profile")

    def get_profile(self, user_id: str) -> UserDto:
        try:
            return self._require_user(user_id)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error fetching user profile: {e}")
            raise DatabaseError("Failed to fetch user profile")

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> UserDto:
        try:
            self._require_user(user_id)
            # Only fields the client actually sent; null clears optional fields only
            fields = {
                key: updates[key]
                for key in PROFILE_FIELDS
                if key in updates and (updates[key] is not None or key in NULLABLE_FIELDS)
            }
            if "name" in fields and not (fields["name"] or "").strip():
                raise ValidationError("Name cannot be empty")
            if fields:
                self.user_repo.update_profile_fields(user_id, fields)
            if updates.get("skills") is not None:
                self.user_repo.replace_skills(user_id, updates["skills"])
            logger.info(f"Profile updated for user {user_id}")
            return self._require_user(user_id)
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error updating profile: {e}")
            raise DatabaseError("Failed to update profile")

    def toggle_availability(self, user_id: str, is_available: Optional[bool]) -> Dict[str, Any]:
        if is_available is None:
            raise ValidationError("Availability status is required")
        try:
            self._require_user(user_id)
            self.user_repo.update_profile_fields(user_id, {"is_available": is_available})
        except AppError:
            raise
        except Exception as e:
            logger.error(f"Error toggling availability: {e}")
            raise DatabaseError("Failed to update availability")
        logger.info(f"Availability updated for user {user_id}: {is_available}")
        return {"id": user_id, "isAvailable": is_available}
