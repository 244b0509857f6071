"""Upload pipeline: stage payloads, then record them in the log under the upload lock.

Flow for one request:

    setup -> limits -> stage every file -> acquire lock
          -> [load log -> allocate id per file -> append batch] -> release lock

The bracketed part is the critical section. A file whose id can't be
allocated is skipped and the rest of the batch still goes through. Files
staged before a lock timeout stay on disk; they are not rolled back.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence

import aiofiles.os

from admin_panel.errors import AllocationError, NoFilesError, SetupError, UploadLimitError
from admin_panel.schemas.file import FileRecord
from admin_panel.services.file_lock import FileLock
from admin_panel.services.file_storage import FileStorageService, StagedFile
from admin_panel.services.id_allocator import IdAllocator
from admin_panel.services.upload_log import UploadLogStore
from admin_panel.utils.filenames import file_type_of

logger = logging.getLogger(__name__)


@dataclass
class IncomingFile:
    """One multipart file as handed over by the HTTP layer."""
    payload: bytes
    declared_name: str
    size: int


@dataclass
class UploadResult:
    succeeded: list[FileRecord] = field(default_factory=list)
    failed: int = 0
    received: int = 0


def utc_timestamp() -> str:
    """ISO-8601 UTC with milliseconds, e.g. 2024-05-01T08:30:00.123Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class UploadPipeline:
    """Orchestrates multi-file uploads into the upload log."""

    def __init__(
        self,
        storage: FileStorageService,
        upload_log: UploadLogStore,
        id_allocator: IdAllocator,
        lock: FileLock,
        max_files: int = 10,
        max_file_size: int = 10 * 1024 * 1024,
        lock_max_attempts: int = 10,
        lock_retry_interval_ms: int = 100,
        uploader_name: str = "System",
        default_status: str = "complete",
    ):
        self.storage = storage
        self.upload_log = upload_log
        self.id_allocator = id_allocator
        self.lock = lock
        self.max_files = max_files
        self.max_file_size = max_file_size
        self.lock_max_attempts = lock_max_attempts
        self.lock_retry_interval_ms = lock_retry_interval_ms
        self.uploader_name = uploader_name
        self.default_status = default_status

    async def setup(self) -> None:
        """Create the storage directory, lock directory and log file if missing."""
        try:
            await self.storage.ensure()
            await self.upload_log.ensure()
            await aiofiles.os.makedirs(self.lock.lock_path.parent, exist_ok=True)
        except OSError as e:
            logger.error(f"Upload storage setup failed: {e}")
            raise SetupError(detail=str(e)) from e

    def check_limits(self, files: Sequence[IncomingFile]) -> None:
        if len(files) > self.max_files:
            raise UploadLimitError(detail=f"At most {self.max_files} files per upload")
        for f in files:
            if f.size > self.max_file_size:
                raise UploadLimitError(
                    detail=f"{f.declared_name} exceeds {self.max_file_size} bytes"
                )

    def build_record(self, record_id: int, staged: StagedFile) -> FileRecord:
        return FileRecord(
            id=record_id,
            file_name=staged.file_name,
            original_name=staged.original_name,
            file_type=file_type_of(staged.file_name),
            upload_date=utc_timestamp(),
            file_size=staged.size,
            uploader_name=self.uploader_name,
            status=self.default_status,
        )

    async def handle_upload(self, files: Sequence[IncomingFile]) -> UploadResult:
        await self.setup()
        self.check_limits(files)
        if not files:
            raise NoFilesError()

        staged = [await self.storage.stage(f.payload, f.declared_name) for f in files]
        logger.info(f"Received {len(staged)} file(s)")

        result = UploadResult(received=len(staged))
        async with self.lock.held(self.lock_max_attempts, self.lock_retry_interval_ms):
            logs = await self.upload_log.load()
            for item in staged:
                try:
                    record_id = await self.id_allocator.next_id()
                except AllocationError as e:
                    logger.warning(f"Skipping {item.file_name}: {e}")
                    result.failed += 1
                    continue
                result.succeeded.append(self.build_record(record_id, item))
                logger.debug(f"Processed {item.file_name} as id {record_id}")

            if result.succeeded:
                await self.upload_log.append_to(
                    logs, [r.to_document() for r in result.succeeded]
                )
                logger.info(f"Recorded {len(result.succeeded)} file(s) in the upload log")
        return result
