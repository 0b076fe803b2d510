"""
Resource Model - metadata for one uploaded study file.

Rows are inserted once, after the file is stored and its public URL is
known. They are never updated.
"""

import uuid
from sqlalchemy import Column, String, DateTime, Index

from noteshub.db.base import Base
from noteshub.core.time_utils import get_utc_now


class Resource(Base):
    __tablename__ = "resources"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    branch = Column(String(8), nullable=False)
    subject_id = Column(String(32), nullable=False)

    file_name = Column(String(255), nullable=False)
    file_type = Column(String(16), nullable=False)
    file_size = Column(String(32), nullable=False)  # "2.40 MB"
    tag = Column(String(32), nullable=False)
    file_url = Column(String(1024), nullable=False)
    storage_path = Column(String(512), nullable=False)

    uploaded_by = Column(String(255), nullable=False, default="Anonymous")
    uploader_profile_id = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), default=get_utc_now, nullable=False)

    __table_args__ = (
        Index("ix_resources_branch_subject", "branch", "subject_id"),
    )
