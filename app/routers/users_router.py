from fastapi import APIRouter, Depends

from ..application.services.profile_service import ProfileService
from ..dependencies import get_current_user_id, get_profile_service
from ..schemas import (
    AvailabilityRequest,
    AvailabilityResponse,
    CompleteProfileRequest,
    ProfileResponse,
    UpdateProfileRequest,
    UserResponse,
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/profile", response_model=ProfileResponse, status_code=201)
def complete_profile(
    payload: CompleteProfileRequest,
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    user = profiles.complete_profile(user_id, payload.model_dump())
    return ProfileResponse(message="Profile completed successfully", user=UserResponse.from_dto(user))


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    return ProfileResponse(user=UserResponse.from_dto(profiles.get_profile(user_id)))


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    payload: UpdateProfileRequest,
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    user = profiles.update_profile(user_id, payload.model_dump(exclude_unset=True))
    return ProfileResponse(message="Profile updated successfully", user=UserResponse.from_dto(user))


@router.patch("/availability", response_model=AvailabilityResponse)
def toggle_availability(
    payload: AvailabilityRequest,
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
):
    result = profiles.toggle_availability(user_id, payload.is_available)
    return AvailabilityResponse(message="Availability updated successfully", id=result["id"], is_available=result["isAvailable"])
