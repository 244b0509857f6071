"""File record request/response schemas."""
from typing import Optional
from pydantic import ConfigDict

from admin_panel.schemas.base import CamelModel


class FileRecord(CamelModel):
    """One entry of the upload log."""
    id: int
    file_name: str
    original_name: str
    file_type: str
    upload_date: str
    file_size: int
    uploader_name: str = "System"
    status: str = "complete"

    # Entries written by older versions may carry extra keys; keep them
    model_config = ConfigDict(extra="allow")


class FileUpdate(CamelModel):
    """Metadata fields accepted by PUT /files/{id}. Only provided fields are updated."""
    original_name: Optional[str] = None
    upload_date: Optional[str] = None
    status: Optional[str] = None


class FileListResponse(CamelModel):
    files: list[FileRecord] = []
    total: int = 0
    page: int = 1
    per_page: int = 7
    total_pages: int = 0


class UploadResponse(CamelModel):
    success: bool = True
    files: list[FileRecord] = []
    failed: int = 0


class UpdateResponse(CamelModel):
    success: bool = True
    file: FileRecord


class DeleteResponse(CamelModel):
    success: bool = True
    message: str = "File deleted"
    data: FileListResponse
