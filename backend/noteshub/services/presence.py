import time
from typing import Callable, Dict, Optional

from noteshub.core.config import settings


class PresenceTracker:
    """
    Best-effort online count for the discussion room. Viewers send
    heartbeats; anyone seen inside the window counts as online. The number
    is advisory and never gates sending or receiving messages.
    """

    def __init__(self, window_seconds: Optional[int] = None, clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds or settings.PRESENCE_WINDOW_SECONDS
        self.clock = clock
        self._last_seen: Dict[str, float] = {}

    def heartbeat(self, viewer_key: str) -> int:
        self._last_seen[viewer_key] = self.clock()
        return self.online_count()

    def online_count(self) -> int:
        cutoff = self.clock() - self.window_seconds
        stale = [key for key, seen in self._last_seen.items() if seen < cutoff]
        for key in stale:
            del self._last_seen[key]
        return len(self._last_seen)
