"""
Object store backends.

Both backends expose the same two capabilities: upload a blob into
`bucket/path` and resolve a public retrieval URL for that path.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import aiofiles
import httpx
import structlog

from noteshub.core.config import Settings, settings as default_settings
from noteshub.core.exceptions import RemoteServiceError

logger = structlog.get_logger()


@dataclass
class FileUpload:
    """A file picked by the user, already read into memory."""
    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot, or '' when there is none."""
        return os.path.splitext(self.file_name)[1].lower()


class ObjectStore:
    async def upload(self, bucket: str, path: str, content: bytes, content_type: str, upsert: bool = False) -> str:
        raise NotImplementedError

    def public_url(self, bucket: str, path: str) -> Optional[str]:
        raise NotImplementedError


class LocalObjectStore(ObjectStore):
    """
    Development backend. Files land under UPLOAD_DIR/<bucket>/<path> and are
    served back by the /files route.
    """

    def __init__(self, root: str, public_base_url: Optional[str]):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def resolve(self, bucket: str, path: str) -> Path:
        base = (self.root / bucket).resolve()
        target = (base / path).resolve()
        if base not in target.parents:
            raise RemoteServiceError("Invalid storage path", service="object_store")
        return target

    async def upload(self, bucket, path, content, content_type, upsert=False):
        target = self.resolve(bucket, path)
        if target.exists() and not upsert:
            raise RemoteServiceError("The resource already exists", service="object_store")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("local_upload_failed", bucket=bucket, path=path, error=str(e))
            raise RemoteServiceError(f"Upload failed: {e.strerror or e}", service="object_store")
        return path

    def public_url(self, bucket, path):
        if not self.public_base_url:
            return None
        return f"{self.public_base_url}/files/{bucket}/{quote(path)}"


class SupabaseObjectStore(ObjectStore):
    """Supabase Storage over its REST API."""

    def __init__(self, url: str, key: str, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout
        self.transport = transport

    def _headers(self, content_type: str, upsert: bool) -> dict:
        return {
            "Authorization": f"Bearer {self.key}",
            "apikey": self.key,
            "Content-Type": content_type,
            "x-upsert": "true" if upsert else "false",
        }

    async def upload(self, bucket, path, content, content_type, upsert=False):
        endpoint = f"{self.url}/storage/v1/object/{bucket}/{quote(path)}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(endpoint, content=content, headers=self._headers(content_type, upsert))
        except httpx.HTTPError as e:
            logger.error("supabase_upload_unreachable", bucket=bucket, path=path, error=str(e))
            raise RemoteServiceError("Storage service unreachable", service="object_store")

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error("supabase_upload_failed", bucket=bucket, path=path, status=response.status_code, error=message)
            raise RemoteServiceError(message, service="object_store")
        return path

    def public_url(self, bucket, path):
        return f"{self.url}/storage/v1/object/public/{bucket}/{quote(path)}"


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Storage error ({response.status_code})"
    return body.get("message") or body.get("error") or f"Storage error ({response.status_code})"


def build_object_store(config: Settings = default_settings) -> ObjectStore:
    if config.STORAGE_BACKEND == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise RuntimeError("STORAGE_BACKEND=supabase needs SUPABASE_URL and SUPABASE_KEY")
        return SupabaseObjectStore(config.SUPABASE_URL, config.SUPABASE_KEY)
    return LocalObjectStore(config.UPLOAD_DIR, config.PUBLIC_BASE_URL)
