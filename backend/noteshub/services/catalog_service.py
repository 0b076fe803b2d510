"""
Resource Catalog.

Answers "what resources exist for subject X under filter Y" and accepts
new uploads. An upload is three gated steps: store the object, resolve its
public URL, insert the metadata row. Metadata never exists without its
object. An object whose metadata insert failed is left behind and logged.
"""

import os
import uuid
from typing import List, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

import structlog

from noteshub.core.catalog import ALL_TAGS, get_subject, parse_tag, parse_tag_filter
from noteshub.core.config import settings
from noteshub.core.exceptions import RemoteServiceError, ValidationFailed
from noteshub.db.record_store import RecordStore
from noteshub.models.resource import Resource
from noteshub.schemas.resource import DownloadLink, ResourceRecord
from noteshub.services.identity import Identity, resolve_identity
from noteshub.services.storage_service import FileUpload, ObjectStore

logger = structlog.get_logger()


def file_type_for(file_name: str) -> str:
    ext = os.path.splitext(file_name)[1].lstrip(".")
    return ext.upper() if ext else "DOC"


def size_label(size_bytes: int) -> str:
    return f"{size_bytes / 1024 / 1024:.2f} MB"


def storage_path_for(subject_id: str, file_name: str) -> str:
    ext = os.path.splitext(file_name)[1].lower()
    return f"{subject_id}/{subject_id}-{uuid.uuid4()}{ext}"


class ResourceCatalog:
    def __init__(
        self,
        store: RecordStore,
        objects: ObjectStore,
        bucket: Optional[str] = None,
        max_upload_mb: Optional[int] = None,
    ):
        self.store = store
        self.objects = objects
        self.bucket = bucket or settings.RESOURCES_BUCKET
        self.max_upload_mb = max_upload_mb or settings.MAX_UPLOAD_MB

    async def list_resources(self, branch, subject_id: str, tag_filter: str = ALL_TAGS) -> List[ResourceRecord]:
        subject = get_subject(branch, subject_id)
        tag = parse_tag_filter(tag_filter)

        filters = {"branch": subject.branch.value, "subject_id": subject.id}
        if tag is not None:
            filters["tag"] = tag.value

        rows = await self.store.select(Resource, filters, order_by="created_at", descending=True)
        return [ResourceRecord.model_validate(row) for row in rows]

    def check_size(self, size: Optional[int]) -> None:
        """Rejects a file over the limit. Routes call it with the declared size before reading."""
        if size is not None and size > self.max_upload_mb * 1024 * 1024:
            raise ValidationFailed(f"File too large. Maximum size is {self.max_upload_mb}MB.")

    def validate_upload(self, file: Optional[FileUpload]) -> FileUpload:
        if file is None or not file.file_name:
            raise ValidationFailed("Please select a file to upload")
        if file.size == 0:
            raise ValidationFailed("The selected file is empty")
        self.check_size(file.size)
        return file

    async def upload_resource(
        self,
        branch,
        subject_id: str,
        file: Optional[FileUpload],
        tag: str,
        identity: Optional[Identity] = None,
    ) -> ResourceRecord:
        # Everything here runs before any remote call
        subject = get_subject(branch, subject_id)
        file = self.validate_upload(file)
        tag = parse_tag(tag)
        identity = identity or resolve_identity()

        path = storage_path_for(subject.id, file.file_name)

        # 1. Object
        await self.objects.upload(self.bucket, path, file.content, file.content_type)

        # 2. Public URL
        file_url = self.objects.public_url(self.bucket, path)
        if not file_url:
            logger.error("public_url_unresolved", bucket=self.bucket, path=path)
            raise RemoteServiceError("Failed to get public URL for the uploaded file", service="object_store")

        # 3. Metadata
        row = Resource(
            branch=subject.branch.value,
            subject_id=subject.id,
            file_name=file.file_name,
            file_type=file_type_for(file.file_name),
            file_size=size_label(file.size),
            tag=tag.value,
            file_url=file_url,
            storage_path=path,
            uploaded_by=identity.name,
            uploader_profile_id=identity.profile_id,
        )
        try:
            row = await self.store.insert(row)
        except RemoteServiceError:
            # No cross-step transaction: the stored object stays orphaned
            logger.warning("orphaned_object", bucket=self.bucket, path=path)
            raise

        logger.info("resource_uploaded", resource_id=row.id, branch=row.branch, subject_id=row.subject_id, tag=row.tag)
        return ResourceRecord.model_validate(row)

    async def get_resource(self, resource_id: str) -> Optional[ResourceRecord]:
        row = await self.store.get(Resource, resource_id)
        return ResourceRecord.model_validate(row) if row is not None else None

    def download_resource(self, file_url: str, file_name: str) -> DownloadLink:
        """
        Link that makes the store suggest `file_name` as the saved name.
        The bytes never pass through here.
        """
        parts = urlsplit(file_url)
        query = [(k, v) for k, v in parse_qsl(parts.query) if k != "download"]
        query.append(("download", file_name))
        return DownloadLink(url=urlunsplit(parts._replace(query=urlencode(query))), file_name=file_name)


class SubjectCatalogView:
    """
    State behind one subject page: current (branch, subject, filter), the
    listed records and the file picked for upload.

    A refresh that finishes after the parameters changed, or after the view
    was closed, is discarded.
    """

    def __init__(self, catalog: ResourceCatalog, branch, subject_id: str, tag_filter: str = ALL_TAGS):
        self.catalog = catalog
        self.branch = branch
        self.subject_id = subject_id
        self.tag_filter = tag_filter
        self.resources: List[ResourceRecord] = []
        self.pending_file: Optional[FileUpload] = None
        self.error: Optional[str] = None
        self.closed = False
        self._generation = 0

    async def refresh(self) -> List[ResourceRecord]:
        self._generation += 1
        generation = self._generation
        try:
            records = await self.catalog.list_resources(self.branch, self.subject_id, self.tag_filter)
        except RemoteServiceError as e:
            if self._is_current(generation):
                self.error = e.message
            raise
        if self._is_current(generation):
            self.resources = records
            self.error = None
        return records

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation

    async def change(
        self, branch=None, subject_id: Optional[str] = None, tag_filter: Optional[str] = None
    ) -> List[ResourceRecord]:
        if branch is not None:
            self.branch = branch
        if subject_id is not None:
            self.subject_id = subject_id
        if tag_filter is not None:
            self.tag_filter = tag_filter
        return await self.refresh()

    def select_file(self, file: Optional[FileUpload]) -> None:
        self.pending_file = file

    async def upload(self, tag: str, identity: Optional[Identity] = None) -> ResourceRecord:
        record = await self.catalog.upload_resource(self.branch, self.subject_id, self.pending_file, tag, identity)
        if not self.closed:
            self.pending_file = None
            await self.refresh()
        return record

    def close(self) -> None:
        self.closed = True
