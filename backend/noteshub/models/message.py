"""
Chat Message Model - one line in the global discussion room.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime

from noteshub.db.base import Base
from noteshub.core.time_utils import get_utc_now


class Message(Base):
    __tablename__ = "messages"

    # Autoincrement keeps ids in creation order
    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=False)
    profile_id = Column(String(36), nullable=True, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False, index=True)
