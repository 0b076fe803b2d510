from sqlalchemy import Column, String, Text, DateTime

from noteshub.db.base import Base
from noteshub.core.time_utils import get_utc_now


class Profile(Base):
    """
    Public profile of a signed-in user. Shares its id with the auth user.
    """
    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True)
    username = Column(String(255), nullable=False)
    about = Column(Text, nullable=True)
    avatar_url = Column(String(1024), nullable=True)

    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=get_utc_now, onupdate=get_utc_now, nullable=False)
