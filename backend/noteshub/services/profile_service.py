import uuid
from typing import Dict, Iterable, Optional

import structlog

from noteshub.core.config import settings
from noteshub.core.exceptions import NotFound, RemoteServiceError, ValidationFailed
from noteshub.core.time_utils import get_utc_now
from noteshub.db.record_store import RecordStore
from noteshub.models.auth_user import AuthUser
from noteshub.models.profile import Profile
from noteshub.services.storage_service import FileUpload, ObjectStore

logger = structlog.get_logger()


def default_username(user: AuthUser) -> str:
    if user.username:
        return user.username
    return f"user_{uuid.uuid4().hex[:8]}"


class ProfileService:
    def __init__(
        self,
        store: RecordStore,
        objects: ObjectStore,
        bucket: Optional[str] = None,
        max_avatar_mb: Optional[int] = None,
    ):
        self.store = store
        self.objects = objects
        self.bucket = bucket or settings.AVATARS_BUCKET
        self.max_avatar_mb = max_avatar_mb or settings.MAX_AVATAR_MB

    async def get(self, profile_id: Optional[str]) -> Optional[Profile]:
        if not profile_id:
            return None
        return await self.store.get(Profile, profile_id)

    async def get_or_create(self, user: AuthUser) -> Profile:
        """Profiles are created the first time a signed-in user needs one."""
        profile = await self.store.get(Profile, user.id)
        if profile is not None:
            return profile

        try:
            profile = await self.store.insert(Profile(id=user.id, username=default_username(user)))
        except RemoteServiceError:
            # A concurrent request may have created it between the read and the insert
            profile = await self.store.get(Profile, user.id)
            if profile is None:
                raise
            return profile

        logger.info("profile_created", profile_id=profile.id)
        return profile

    async def update(self, profile_id: str, username: Optional[str] = None, about: Optional[str] = None) -> Profile:
        values = {"updated_at": get_utc_now()}
        if username is not None:
            if not username.strip():
                raise ValidationFailed("Username cannot be empty")
            values["username"] = username.strip()
        if about is not None:
            values["about"] = about.strip() or None

        profile = await self.store.update(Profile, profile_id, values)
        if profile is None:
            raise NotFound("Profile not found")
        logger.info("profile_updated", profile_id=profile_id, fields=sorted(k for k in values if k != "updated_at"))
        return profile

    def check_avatar_size(self, size: Optional[int]) -> None:
        if size is not None and size > self.max_avatar_mb * 1024 * 1024:
            raise ValidationFailed(f"File too large. Maximum size is {self.max_avatar_mb}MB.")

    async def upload_avatar(self, profile_id: str, file: Optional[FileUpload]) -> Profile:
        if file is None or not file.file_name or file.size == 0:
            raise ValidationFailed("Please select an image")
        self.check_avatar_size(file.size)

        # One avatar per profile, overwritten on change
        path = f"{profile_id}{file.extension}"
        await self.objects.upload(self.bucket, path, file.content, file.content_type, upsert=True)
        avatar_url = self.objects.public_url(self.bucket, path)
        if not avatar_url:
            raise RemoteServiceError("Failed to get public URL for the avatar", service="object_store")

        profile = await self.store.update(Profile, profile_id, {"avatar_url": avatar_url, "updated_at": get_utc_now()})
        if profile is None:
            raise NotFound("Profile not found")
        logger.info("avatar_updated", profile_id=profile_id)
        return profile

    async def lookup_avatars(self, profile_ids: Iterable[Optional[str]]) -> Dict[str, Optional[str]]:
        profiles = await self.store.lookup(Profile, profile_ids)
        return {pid: p.avatar_url for pid, p in profiles.items()}
