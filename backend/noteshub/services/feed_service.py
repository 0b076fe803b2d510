"""
Message Feed for the global discussion room.

History (pull) and realtime inserts (push) both funnel into one
`MessageFeed`: keyed by message id, ordered by creation time, insert if
absent. Nothing is rendered optimistically; a sender sees their own message
when the insert event comes back like everyone else's.
"""

import bisect
import enum
from typing import Awaitable, Callable, Dict, List, Optional

import structlog

from noteshub.core.config import settings
from noteshub.core.exceptions import RemoteServiceError, ValidationFailed
from noteshub.db.record_store import RecordStore
from noteshub.models.message import Message
from noteshub.schemas.message import ChatMessage, MessageView
from noteshub.services.identity import Identity
from noteshub.services.profile_service import ProfileService
from noteshub.services.realtime import InsertEvent, RealtimeChannel, Subscription

logger = structlog.get_logger()

MESSAGES_TABLE = Message.__tablename__

OnMessage = Callable[[ChatMessage], Awaitable[None]]


def _sort_key(message: ChatMessage):
    return (message.created_at, message.id)


class MessageFeed:
    """Append-only, id-keyed, timestamp-ordered collection of messages."""

    def __init__(self):
        self._by_id: Dict[int, ChatMessage] = {}
        self._ordered: List[ChatMessage] = []

    def insert_if_absent(self, message: ChatMessage) -> bool:
        if message.id in self._by_id:
            return False
        self._by_id[message.id] = message
        bisect.insort(self._ordered, message, key=_sort_key)
        return True

    def clear(self) -> None:
        self._by_id.clear()
        self._ordered.clear()

    def __contains__(self, message_id) -> bool:
        return message_id in self._by_id

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self):
        return iter(list(self._ordered))

    @property
    def messages(self) -> List[ChatMessage]:
        return list(self._ordered)


class MessageFeedService:
    def __init__(
        self,
        store: RecordStore,
        channel: RealtimeChannel,
        profiles: ProfileService,
        max_length: Optional[int] = None,
    ):
        self.store = store
        self.channel = channel
        self.profiles = profiles
        self.max_length = max_length or settings.MESSAGE_MAX_LENGTH

    async def _avatars_for(self, profile_ids) -> Dict[str, Optional[str]]:
        # A failed avatar lookup only costs the avatar
        try:
            return await self.profiles.lookup_avatars(profile_ids)
        except RemoteServiceError as e:
            logger.warning("avatar_lookup_failed", error=e.message)
            return {}

    async def load_history(self) -> List[ChatMessage]:
        rows = await self.store.select(Message, order_by="created_at")
        avatars = await self._avatars_for(row.profile_id for row in rows)
        return [
            ChatMessage(
                id=row.id,
                author_display_name=row.username,
                author_profile_id=row.profile_id,
                body=row.content,
                created_at=row.created_at,
                author_avatar_url=avatars.get(row.profile_id),
            )
            for row in rows
        ]

    async def enrich(self, row: dict) -> ChatMessage:
        avatar_url = None
        if row.get("profile_id"):
            avatars = await self._avatars_for([row["profile_id"]])
            avatar_url = avatars.get(row["profile_id"])
        return ChatMessage.from_row(row, avatar_url)

    def subscribe_to_new_messages(self, on_message: OnMessage) -> Subscription:
        async def handle_insert(event: InsertEvent):
            # Enriched once per insert, shared by every open feed
            message = await event.derive("chat_message", lambda: self.enrich(event.row))
            await on_message(message)

        return self.channel.subscribe(MESSAGES_TABLE, handle_insert)

    def validate_body(self, body: Optional[str]) -> Optional[str]:
        """Trimmed body, or None when there is nothing to send."""
        text = (body or "").strip()
        if not text:
            return None
        if len(text) > self.max_length:
            raise ValidationFailed(f"Message is too long (max {self.max_length} characters)")
        return text

    async def send_message(self, body: Optional[str], identity: Identity) -> Optional[int]:
        """
        Insert a message. Returns the new id, or None when the body is blank
        (no remote call is made in that case).
        """
        text = self.validate_body(body)
        if text is None:
            return None

        row = await self.store.insert(Message(
            username=identity.name,
            profile_id=identity.profile_id,
            content=text,
        ))
        logger.info("message_sent", message_id=row.id, anonymous=identity.is_anonymous)
        return row.id


class FeedState(str, enum.Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class FeedView:
    """
    One activation of the discussion view.

    LOADING -> READY once history is in, LOADING -> ERROR if it could not be
    fetched (terminal; a new view is needed to retry). Subscription events
    only ever add messages.
    """

    def __init__(
        self,
        service: MessageFeedService,
        viewer_profile_id: Optional[str] = None,
        on_change: Optional[Callable[["FeedView"], Awaitable[None]]] = None,
    ):
        self.service = service
        self.viewer_profile_id = viewer_profile_id
        self.on_change = on_change
        self.feed = MessageFeed()
        self.state = FeedState.LOADING
        self.error: Optional[str] = None
        self.draft = ""
        self.closed = False
        self._subscription: Optional[Subscription] = None

    async def activate(self) -> "FeedView":
        # Subscribe before fetching so nothing inserted after the snapshot is missed
        self._subscription = self.service.subscribe_to_new_messages(self._on_message)
        try:
            history = await self.service.load_history()
        except RemoteServiceError as e:
            if not self.closed:
                self.feed.clear()
                self.state = FeedState.ERROR
                self.error = e.message
                self._release()
            return self

        if self.closed:
            return self
        for message in history:
            self.feed.insert_if_absent(message)
        self.state = FeedState.READY
        await self._changed()
        return self

    async def _on_message(self, message: ChatMessage) -> None:
        if self.closed or self.state == FeedState.ERROR:
            return
        if self.feed.insert_if_absent(message) and self.state == FeedState.READY:
            await self._changed()

    async def _changed(self) -> None:
        if self.on_change is not None:
            await self.on_change(self)

    async def send(self, identity: Identity) -> Optional[int]:
        """
        Send the current draft. The draft is cleared only once the insert
        succeeded; on failure it is kept for a retry.
        """
        message_id = await self.service.send_message(self.draft, identity)
        if message_id is not None:
            self.draft = ""
        return message_id

    def rendered(self) -> List[MessageView]:
        return [MessageView.for_viewer(m, self.viewer_profile_id) for m in self.feed]

    def _release(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def close(self) -> None:
        self.closed = True
        self._release()
