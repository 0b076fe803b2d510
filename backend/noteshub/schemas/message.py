from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from noteshub.core.time_utils import ensure_utc, format_chat_time
from noteshub.services.identity import author_label, is_own_message


class ChatMessage(BaseModel):
    """A stored message, with the author's avatar joined in at read time."""
    model_config = ConfigDict(frozen=True)

    id: int
    author_display_name: str
    author_profile_id: Optional[str] = None
    body: str
    created_at: datetime
    author_avatar_url: Optional[str] = None

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @classmethod
    def from_row(cls, row: dict, avatar_url: Optional[str] = None) -> "ChatMessage":
        return cls(
            id=row["id"],
            author_display_name=row["username"],
            author_profile_id=row.get("profile_id"),
            body=row["content"],
            created_at=row["created_at"],
            author_avatar_url=avatar_url,
        )


class MessageView(ChatMessage):
    """A message as rendered for one viewer."""
    is_own: bool = False
    author_label: str
    display_time: str

    @classmethod
    def for_viewer(cls, message: ChatMessage, viewer_profile_id: Optional[str]) -> "MessageView":
        return cls(
            **message.model_dump(),
            is_own=is_own_message(message.author_profile_id, viewer_profile_id),
            author_label=author_label(message.author_display_name, message.author_profile_id, viewer_profile_id),
            display_time=format_chat_time(message.created_at),
        )


class SendMessageRequest(BaseModel):
    body: str
    display_name: Optional[str] = Field(None, description="Name used when not signed in")


class PresenceResponse(BaseModel):
    online: int
