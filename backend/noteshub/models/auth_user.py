import uuid
from sqlalchemy import Column, String, DateTime

from noteshub.db.base import Base
from noteshub.core.time_utils import get_utc_now


class AuthUser(Base):
    __tablename__ = "auth_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    username = Column(String(255), nullable=True)  # sign-up metadata, seeds the profile
    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)
