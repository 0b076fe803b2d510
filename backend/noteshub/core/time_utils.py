from datetime import datetime
from typing import Optional
import pytz

IST = pytz.timezone('Asia/Kolkata')
UTC = pytz.utc

def get_utc_now() -> datetime:
    """Get current time in UTC."""
    return datetime.now(UTC)

def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    SQLite hands timestamps back naive. Treat naive values as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)

def to_ist(dt: datetime) -> datetime:
    """Convert a datetime object to IST."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(IST)

def format_chat_time(dt: datetime) -> str:
    """Clock label shown next to a chat message, e.g. '10:30 AM'."""
    if dt is None:
        return ""
    return to_ist(dt).strftime("%I:%M %p")
