from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from noteshub.api.deps import get_object_store
from noteshub.core.exceptions import NotFound
from noteshub.services.storage_service import LocalObjectStore, ObjectStore

router = APIRouter()


@router.get("/{bucket}/{path:path}")
async def get_local_file(
    bucket: str,
    path: str,
    download: Optional[str] = Query(None, description="Suggested file name for saving"),
    objects: ObjectStore = Depends(get_object_store),
):
    """
    Public retrieval for the local object store.
    Mirrors Supabase public URLs, including the `download` parameter.
    """
    if not isinstance(objects, LocalObjectStore):
        raise NotFound("File not found")

    target = objects.resolve(bucket, path)
    if not target.is_file():
        raise NotFound("File not found")

    if download:
        return FileResponse(target, filename=download)
    return FileResponse(target)
