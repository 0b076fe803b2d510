from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from noteshub.api.deps import get_catalog, get_optional_user, get_profile_service
from noteshub.core import catalog as subject_catalog
from noteshub.core.catalog import ALL_TAGS, ResourceTag
from noteshub.models.auth_user import AuthUser
from noteshub.schemas.resource import BranchInfo, ResourceRecord, SubjectInfo
from noteshub.services.catalog_service import ResourceCatalog
from noteshub.services.identity import resolve_identity
from noteshub.services.profile_service import ProfileService
from noteshub.services.storage_service import FileUpload

router = APIRouter()


def _subject_info(subject) -> SubjectInfo:
    return SubjectInfo(branch=subject.branch, id=subject.id, name=subject.name, description=subject.description)


@router.get("", response_model=List[BranchInfo])
async def list_branches() -> Any:
    return [
        BranchInfo(id=b["id"], name=b["name"], subjects=[_subject_info(s) for s in subject_catalog.list_subjects(b["id"])])
        for b in subject_catalog.list_branches()
    ]


@router.get("/{branch}", response_model=BranchInfo)
async def read_branch(branch: str) -> Any:
    info = subject_catalog.get_branch(branch)
    return BranchInfo(
        id=info["id"],
        name=info["name"],
        subjects=[_subject_info(s) for s in subject_catalog.list_subjects(branch)],
    )


@router.get("/{branch}/subjects/{subject_id}", response_model=SubjectInfo)
async def read_subject(branch: str, subject_id: str) -> Any:
    return _subject_info(subject_catalog.get_subject(branch, subject_id))


@router.get("/{branch}/subjects/{subject_id}/resources", response_model=List[ResourceRecord])
async def list_resources(
    branch: str,
    subject_id: str,
    tag: str = Query(ALL_TAGS, description="'All' or one of the resource tags"),
    catalog: ResourceCatalog = Depends(get_catalog),
) -> Any:
    """
    Resources for one subject, newest first.
    """
    return await catalog.list_resources(branch, subject_id, tag)


@router.post(
    "/{branch}/subjects/{subject_id}/resources",
    response_model=ResourceRecord,
    status_code=status.HTTP_201_CREATED,
)
async def upload_resource(
    branch: str,
    subject_id: str,
    file: Optional[UploadFile] = File(None),
    tag: str = Form(ResourceTag.ENDSEM.value),
    display_name: Optional[str] = Form(None),
    catalog: ResourceCatalog = Depends(get_catalog),
    user: Optional[AuthUser] = Depends(get_optional_user),
    profiles: ProfileService = Depends(get_profile_service),
) -> Any:
    """
    Upload a file and record it under the subject.
    1. Store the file.
    2. Resolve its public URL.
    3. Insert the metadata row.
    """
    upload = None
    if file is not None and file.filename:
        # Reject on the declared size before reading it into memory
        catalog.check_size(file.size)
        upload = FileUpload(
            file_name=file.filename,
            content=await file.read(),
            content_type=file.content_type or "application/octet-stream",
        )
    profile = await profiles.get_or_create(user) if user is not None else None
    identity = resolve_identity(profile, display_name)
    return await catalog.upload_resource(branch, subject_id, upload, tag, identity)
