from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from noteshub.core.catalog import Branch, ResourceTag
from noteshub.core.time_utils import ensure_utc


class ResourceRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    branch: Branch
    subject_id: str
    file_name: str
    file_type: str
    file_size: str = Field(..., description="Human readable size, e.g. '2.40 MB'")
    tag: ResourceTag
    file_url: str
    uploaded_by: str = "Anonymous"
    uploader_profile_id: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class SubjectInfo(BaseModel):
    branch: Branch
    id: str
    name: str
    description: str


class BranchInfo(BaseModel):
    id: Branch
    name: str
    subjects: List[SubjectInfo] = []


class DownloadLink(BaseModel):
    url: str
    file_name: str
