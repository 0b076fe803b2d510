from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from noteshub.api.deps import get_catalog
from noteshub.core.exceptions import NotFound
from noteshub.schemas.resource import ResourceRecord
from noteshub.services.catalog_service import ResourceCatalog

router = APIRouter()


@router.get("/{resource_id}", response_model=ResourceRecord)
async def read_resource(resource_id: str, catalog: ResourceCatalog = Depends(get_catalog)):
    record = await catalog.get_resource(resource_id)
    if record is None:
        raise NotFound("Resource not found")
    return record


@router.get("/{resource_id}/download")
async def download_resource(resource_id: str, catalog: ResourceCatalog = Depends(get_catalog)):
    """
    Redirect to the stored file, asking the store to save it under its
    original name.
    """
    record = await catalog.get_resource(resource_id)
    if record is None:
        raise NotFound("Resource not found")
    link = catalog.download_resource(record.file_url, record.file_name)
    return RedirectResponse(link.url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
