from typing import Optional
from pydantic import BaseModel, ConfigDict


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    about: Optional[str] = None
    avatar_url: Optional[str] = None


class ProfileUpdate(BaseModel):
    username: Optional[str] = None
    about: Optional[str] = None
