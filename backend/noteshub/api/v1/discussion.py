import asyncio
import json
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Header, Request, Response, status
from fastapi.responses import StreamingResponse
import structlog

from noteshub.api.deps import (
    get_feed_service,
    get_optional_user,
    get_presence_tracker,
    get_profile_service,
    get_viewer_profile,
)
from noteshub.models.auth_user import AuthUser
from noteshub.models.profile import Profile
from noteshub.schemas.message import ChatMessage, MessageView, PresenceResponse, SendMessageRequest
from noteshub.services.feed_service import MessageFeedService
from noteshub.services.identity import resolve_identity
from noteshub.services.presence import PresenceTracker
from noteshub.services.profile_service import ProfileService

router = APIRouter()
logger = structlog.get_logger()

KEEPALIVE_SECONDS = 15


def _viewer_id(viewer: Optional[Profile]) -> Optional[str]:
    return viewer.id if viewer is not None else None


@router.get("/messages", response_model=List[MessageView])
async def load_history(
    feed: MessageFeedService = Depends(get_feed_service),
    viewer: Optional[Profile] = Depends(get_viewer_profile),
) -> Any:
    """
    Full room history, oldest first, labelled for the current viewer.
    """
    history = await feed.load_history()
    return [MessageView.for_viewer(m, _viewer_id(viewer)) for m in history]


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    request: SendMessageRequest,
    feed: MessageFeedService = Depends(get_feed_service),
    user: Optional[AuthUser] = Depends(get_optional_user),
    profiles: ProfileService = Depends(get_profile_service),
):
    """
    Post to the room. The message itself arrives through the stream.
    A blank body is accepted and ignored.
    """
    text = feed.validate_body(request.body)
    if text is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    profile = await profiles.get_or_create(user) if user is not None else None
    identity = resolve_identity(profile, request.display_name)
    message_id = await feed.send_message(text, identity)
    return {"id": message_id}


@router.get("/stream")
async def stream_messages(
    request: Request,
    feed: MessageFeedService = Depends(get_feed_service),
    viewer: Optional[Profile] = Depends(get_viewer_profile),
):
    """
    Server-Sent Events: one `message` event per inserted chat message.
    Clients key their feed by message id.
    """
    queue: asyncio.Queue = asyncio.Queue()

    async def on_message(message: ChatMessage):
        await queue.put(message)

    subscription = feed.subscribe_to_new_messages(on_message)
    viewer_id = _viewer_id(viewer)

    async def event_generator():
        try:
            yield ": connected\n\n"
            while True:
                if await request.is_disconnected():
                    break
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                payload = MessageView.for_viewer(message, viewer_id).model_dump(mode="json")
                yield f"id: {message.id}\nevent: message\ndata: {json.dumps(payload)}\n\n"
        finally:
            subscription.unsubscribe()
            logger.debug("stream_closed")

    return StreamingResponse(event_generator(), media_type="text/event-stream")


@router.post("/presence", response_model=PresenceResponse)
async def heartbeat(
    presence: PresenceTracker = Depends(get_presence_tracker),
    user: Optional[AuthUser] = Depends(get_optional_user),
    x_viewer_id: Optional[str] = Header(None),
) -> Any:
    """
    Advisory online count. Anonymous viewers send a stable X-Viewer-Id;
    a heartbeat with neither a session nor that header only reads the count.
    """
    key = user.id if user is not None else (x_viewer_id or "").strip()
    if not key:
        return PresenceResponse(online=presence.online_count())
    return PresenceResponse(online=presence.heartbeat(key))
