from typing import Any

from fastapi import APIRouter, Depends, File, UploadFile

from noteshub.api.deps import get_current_profile, get_profile_service
from noteshub.models.profile import Profile
from noteshub.schemas.profile import ProfileResponse, ProfileUpdate
from noteshub.services.profile_service import ProfileService
from noteshub.services.storage_service import FileUpload

router = APIRouter()


@router.get("", response_model=ProfileResponse)
async def read_profile(profile: Profile = Depends(get_current_profile)) -> Any:
    """
    Profile of the signed-in user, created on first access.
    """
    return profile


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    request: ProfileUpdate,
    profile: Profile = Depends(get_current_profile),
    profiles: ProfileService = Depends(get_profile_service),
) -> Any:
    return await profiles.update(profile.id, username=request.username, about=request.about)


@router.post("/avatar", response_model=ProfileResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    profile: Profile = Depends(get_current_profile),
    profiles: ProfileService = Depends(get_profile_service),
) -> Any:
    profiles.check_avatar_size(file.size)
    content = await file.read()
    upload = FileUpload(
        file_name=file.filename or "",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
    return await profiles.upload_avatar(profile.id, upload)
