import logging

from fastapi import APIRouter, Depends, HTTPException

from ..application.ports.session_repo import SessionDto
from ..application.services.profile_service import ProfileService, ProfileView
from ..exceptions import AppError
from ..schemas import LanguageRequest, ProfileResponse, SuccessResponse, UpdateProfileRequest, UserResponse
from .deps import get_current_session, get_profile_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def _profile_response(view: ProfileView) -> ProfileResponse:
    return ProfileResponse(
        user=UserResponse.model_validate(view.user),
        profile=view.profile,
        profileComplete=view.profile_complete,
    )


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    current: SessionDto = Depends(get_current_session),
    profile_service: ProfileService = Depends(get_profile_service),
):
    try:
        view = profile_service.get_profile(current.user_id)
    except AppError:
        raise
    except Exception:
        logger.exception("Error getting user profile")
        raise HTTPException(status_code=500, detail="Failed to get user profile")
    return _profile_response(view)


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    payload: UpdateProfileRequest,
    current: SessionDto = Depends(get_current_session),
    profile_service: ProfileService = Depends(get_profile_service),
):
    """
    Sparse profile update: omitted fields are kept, explicit nulls clear
    """
    try:
        view = profile_service.update_profile(current.user_id, payload.model_dump(exclude_unset=True))
    except AppError:
        raise
    except Exception:
        logger.exception("Error updating profile")
        raise HTTPException(status_code=500, detail="Failed to update profile")
    logger.info(f"Profile updated for user {current.user_id}, complete={view.profile_complete}")
    return _profile_response(view)


@router.put("/language", response_model=SuccessResponse)
def update_language(
    payload: LanguageRequest,
    current: SessionDto = Depends(get_current_session),
    profile_service: ProfileService = Depends(get_profile_service),
):
    try:
        profile_service.update_language(current.user_id, payload.language)
    except AppError:
        raise
    except Exception:
        logger.exception("Error updating language")
        raise HTTPException(status_code=500, detail="Failed to update language")
    return SuccessResponse(message="Language updated successfully")
