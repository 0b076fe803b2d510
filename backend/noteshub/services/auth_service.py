from dataclasses import dataclass
from typing import Optional

import structlog

from noteshub.core import security
from noteshub.core.exceptions import AuthFailed, RemoteServiceError, ValidationFailed
from noteshub.db.record_store import RecordStore
from noteshub.models.auth_user import AuthUser

logger = structlog.get_logger()

MIN_PASSWORD_LENGTH = 6


@dataclass
class AuthSession:
    access_token: str
    user: AuthUser


class AuthService:
    """
    Email/password accounts. Sessions are signed bearer tokens; sign-out
    revokes the token id.
    """

    def __init__(self, store: RecordStore, denylist: security.TokenDenylist):
        self.store = store
        self.denylist = denylist

    async def sign_up(self, email: str, password: str, username: Optional[str] = None) -> AuthUser:
        email = email.strip().lower()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        existing = await self.store.first(AuthUser, email=email)
        if existing is not None:
            raise ValidationFailed("User already registered")

        user = AuthUser(
            email=email,
            password_hash=security.get_password_hash(password),
            username=username.strip() if username and username.strip() else None,
        )
        try:
            user = await self.store.insert(user, publish=False)
        except RemoteServiceError:
            # Unique email: a concurrent sign-up got there first
            if await self.store.first(AuthUser, email=email) is not None:
                raise ValidationFailed("User already registered")
            raise
        logger.info("user_signed_up", user_id=user.id)
        return user

    async def sign_in(self, email: str, password: str) -> AuthSession:
        user = await self.store.first(AuthUser, email=email.strip().lower())
        if user is None or not security.verify_password(password, user.password_hash):
            logger.warning("sign_in_failed")
            raise AuthFailed("Invalid login credentials")

        token = security.create_access_token(user.id)
        logger.info("user_signed_in", user_id=user.id)
        return AuthSession(access_token=token, user=user)

    async def get_session(self, token: Optional[str]) -> Optional[AuthUser]:
        if not token:
            return None
        payload = security.decode_access_token(token)
        if payload is None or self.denylist.is_revoked(payload.get("jti")):
            return None
        user_id = payload.get("sub")
        if not user_id:
            return None
        return await self.store.get(AuthUser, user_id)

    async def sign_out(self, token: str) -> None:
        payload = security.decode_access_token(token)
        if payload is None:
            return
        if payload.get("jti"):
            self.denylist.revoke(payload["jti"])
        logger.info("user_signed_out", user_id=payload.get("sub"))
