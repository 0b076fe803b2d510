"""
Shared helpers for the test suite: an in-memory record store and an
in-memory object store.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from noteshub.core.exceptions import RemoteServiceError
from noteshub.db.record_store import RecordStore, create_tables
from noteshub.services.realtime import RealtimeChannel
from noteshub.services.storage_service import ObjectStore

BASE_TIME = datetime(2025, 1, 15, 4, 30, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


async def make_store(channel: Optional[RealtimeChannel] = None) -> Tuple[object, RecordStore]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    return engine, RecordStore(factory, channel)


class MemoryObjectStore(ObjectStore):
    def __init__(self, base_url: str = "https://storage.test/public", fail_upload: bool = False, resolve_urls: bool = True):
        self.base_url = base_url
        self.fail_upload = fail_upload
        self.resolve_urls = resolve_urls
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.calls: List[str] = []

    async def upload(self, bucket, path, content, content_type, upsert=False):
        self.calls.append("upload")
        if self.fail_upload:
            raise RemoteServiceError("Bucket not found", service="object_store")
        if (bucket, path) in self.objects and not upsert:
            raise RemoteServiceError("The resource already exists", service="object_store")
        self.objects[(bucket, path)] = content
        return path

    def public_url(self, bucket, path):
        self.calls.append("public_url")
        if not self.resolve_urls:
            return None
        return f"{self.base_url}/{bucket}/{path}"
