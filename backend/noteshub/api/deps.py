from functools import lru_cache
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from noteshub.core.config import settings
from noteshub.core.exceptions import AuthFailed
from noteshub.core.security import TokenDenylist
from noteshub.db.record_store import RecordStore
from noteshub.db.session import AsyncSessionLocal
from noteshub.models.auth_user import AuthUser
from noteshub.models.profile import Profile
from noteshub.services.auth_service import AuthService
from noteshub.services.catalog_service import ResourceCatalog
from noteshub.services.feed_service import MessageFeedService
from noteshub.services.presence import PresenceTracker
from noteshub.services.profile_service import ProfileService
from noteshub.services.realtime import RealtimeChannel
from noteshub.services.storage_service import ObjectStore, build_object_store

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False,
)

# Process-wide collaborators
realtime_channel = RealtimeChannel()
record_store = RecordStore(AsyncSessionLocal, realtime_channel)
token_denylist = TokenDenylist()
presence_tracker = PresenceTracker()


def get_realtime_channel() -> RealtimeChannel:
    return realtime_channel


def get_record_store() -> RecordStore:
    return record_store


@lru_cache
def get_object_store() -> ObjectStore:
    return build_object_store(settings)


def get_presence_tracker() -> PresenceTracker:
    return presence_tracker


def get_auth_service(store: RecordStore = Depends(get_record_store)) -> AuthService:
    return AuthService(store, token_denylist)


def get_profile_service(
    store: RecordStore = Depends(get_record_store),
    objects: ObjectStore = Depends(get_object_store),
) -> ProfileService:
    return ProfileService(store, objects)


def get_catalog(
    store: RecordStore = Depends(get_record_store),
    objects: ObjectStore = Depends(get_object_store),
) -> ResourceCatalog:
    return ResourceCatalog(store, objects)


def get_feed_service(
    store: RecordStore = Depends(get_record_store),
    channel: RealtimeChannel = Depends(get_realtime_channel),
    profiles: ProfileService = Depends(get_profile_service),
) -> MessageFeedService:
    return MessageFeedService(store, channel, profiles)


async def get_optional_user(
    token: Optional[str] = Depends(reusable_oauth2),
    auth: AuthService = Depends(get_auth_service),
) -> Optional[AuthUser]:
    return await auth.get_session(token)


async def get_current_user(user: Optional[AuthUser] = Depends(get_optional_user)) -> AuthUser:
    if user is None:
        raise AuthFailed("Not signed in")
    return user


async def get_current_profile(
    user: AuthUser = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service),
) -> Profile:
    return await profiles.get_or_create(user)


async def get_viewer_profile(
    user: Optional[AuthUser] = Depends(get_optional_user),
    profiles: ProfileService = Depends(get_profile_service),
) -> Optional[Profile]:
    """Profile of the signed-in viewer if one exists yet. Never creates."""
    if user is None:
        return None
    return await profiles.get(user.id)
