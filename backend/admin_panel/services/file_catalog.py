"""List, update and delete over the upload log.

These operations do not take the upload lock: a concurrent update and
delete on the same record race, and the last whole-file write wins.
"""
import logging
from pathlib import Path
from typing import Optional

from admin_panel.errors import NotFoundError
from admin_panel.schemas.file import FileUpdate
from admin_panel.services.file_storage import FileStorageService
from admin_panel.services.id_allocator import IdAllocator
from admin_panel.services.upload_log import Page, UploadLogStore, paginate, sort_records
from admin_panel.services.upload_pipeline import IncomingFile, utc_timestamp
from admin_panel.utils.filenames import file_type_of

logger = logging.getLogger(__name__)


class FileCatalog:
    def __init__(
        self,
        storage: FileStorageService,
        upload_log: UploadLogStore,
        id_allocator: IdAllocator,
    ):
        self.storage = storage
        self.upload_log = upload_log
        self.id_allocator = id_allocator

    async def list_files(
        self,
        page: int = 1,
        per_page: int = 7,
        sort_by: str = "id",
        sort_order: str = "desc",
    ) -> Page:
        return await self.upload_log.list_page(sort_by, sort_order, page, per_page)

    async def update(
        self,
        record_id: int,
        fields: FileUpdate,
        replacement: Optional[IncomingFile] = None,
    ) -> dict:
        """Update metadata, optionally swapping the stored payload.

        Empty strings count as "not provided" and keep the old value.
        """
        existing = await self.upload_log.find_by_id(record_id)
        if existing is None:
            raise NotFoundError()

        overrides = {
            "originalName": fields.original_name or None,
            "uploadDate": fields.upload_date or None,
            "status": fields.status or None,
        }
        if replacement is not None:
            await self.storage.ensure()
            staged = await self.storage.stage(replacement.payload, replacement.declared_name)
            old_name = existing.get("fileName")
            if old_name:
                await self.storage.delete(old_name)
            overrides.update({
                "fileName": staged.file_name,
                "fileSize": staged.size,
                "fileType": file_type_of(staged.file_name),
                "uploadDate": overrides["uploadDate"] or utc_timestamp(),
            })

        updated = await self.upload_log.replace(record_id, overrides)
        logger.info(f"Updated file {record_id}")
        return updated

    async def delete(
        self,
        record_id: int,
        page: int = 1,
        per_page: int = 7,
        sort_by: str = "id",
        sort_order: str = "desc",
    ) -> Page:
        """Remove the record and its payload, then return the clamped page."""
        removed, remaining = await self.upload_log.remove(record_id)
        file_name = removed.get("fileName")
        if file_name:
            await self.storage.delete(file_name)
        logger.info(f"Deleted file {record_id} ({file_name})")
        return paginate(sort_records(remaining, sort_by, sort_order), page, per_page, clamp=True)

    async def reset_ids(self) -> None:
        await self.id_allocator.reset(0)

    def resolve_download(self, file_name: str) -> Path:
        return self.storage.path_for(file_name)
