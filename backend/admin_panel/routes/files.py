"""Files API routes: upload, list, update, delete, download."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Query, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse

from admin_panel.dependencies import Services, get_services
from admin_panel.errors import AdminPanelError, UploadFailedError, UploadLimitError, safe_error_message
from admin_panel.schemas.common import MessageResponse
from admin_panel.schemas.file import (
    DeleteResponse,
    FileListResponse,
    FileUpdate,
    UpdateResponse,
    UploadResponse,
)
from admin_panel.services.upload_log import Page
from admin_panel.services.upload_pipeline import IncomingFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])


@router.api_route("/upload/check", methods=["GET", "POST"])
async def check_upload():
    """Liveness check for the upload endpoint."""
    return {"status": "ok"}


@router.get("/test")
async def test():
    return {"message": "API server is running"}


@router.post("/upload", response_model=UploadResponse)
async def upload_files(
    files: Optional[list[UploadFile]] = FastAPIFile(None),
    services: Services = Depends(get_services),
):
    """Upload up to 10 files and record them in the upload log.

    Partial success (some files skipped) is still a success response.
    """
    try:
        max_size = services.settings.MAX_FILE_SIZE
        incoming = [await _to_incoming(f, max_size) for f in files or []]
        result = await services.pipeline.handle_upload(incoming)
    except AdminPanelError:
        raise
    except Exception as e:
        logger.exception("Upload failed")
        raise UploadFailedError(detail=safe_error_message(e)) from e
    return UploadResponse(files=result.succeeded, failed=result.failed)


@router.get("/files", response_model=FileListResponse)
async def list_files(
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, alias="perPage"),
    sort_by: str = Query("id", alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc|ASC|DESC)$"),
    services: Services = Depends(get_services),
):
    """List recorded files, sorted and paginated."""
    result = await services.catalog.list_files(
        page, per_page or services.settings.DEFAULT_PER_PAGE, sort_by, sort_order
    )
    return _to_list_response(result)


@router.put("/files/{file_id}", response_model=UpdateResponse)
async def update_file(
    file_id: int,
    original_name: Optional[str] = Form(None, alias="originalName"),
    upload_date: Optional[str] = Form(None, alias="uploadDate"),
    status: Optional[str] = Form(None),
    file: Optional[UploadFile] = FastAPIFile(None),
    services: Services = Depends(get_services),
):
    """Update file metadata. A new `file` replaces the stored payload."""
    fields = FileUpdate(original_name=original_name, upload_date=upload_date, status=status)
    replacement = None
    if file is not None:
        replacement = await _to_incoming(file, services.settings.MAX_FILE_SIZE)
    record = await services.catalog.update(file_id, fields, replacement)
    return {"success": True, "file": record}


@router.delete("/files/{file_id}", response_model=DeleteResponse)
async def delete_file(
    file_id: int,
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, alias="perPage"),
    services: Services = Depends(get_services),
):
    """Delete a file and its record, then return the (clamped) current page."""
    result = await services.catalog.delete(
        file_id, page, per_page or services.settings.DEFAULT_PER_PAGE
    )
    return {
        "success": True,
        "message": "File deleted",
        "data": _to_list_response(result),
    }


@router.get("/download/{filename}")
async def download_file(
    filename: str,
    services: Services = Depends(get_services),
):
    """Download a stored payload by its stored name."""
    path = services.catalog.resolve_download(filename)
    return FileResponse(path=path, filename=filename, media_type="application/octet-stream")


@router.post("/reset-id", response_model=MessageResponse)
async def reset_id(services: Services = Depends(get_services)):
    """Reset the ID counter; the next upload gets id 1."""
    await services.catalog.reset_ids()
    return {"success": True, "message": "ID counter reset"}


async def _to_incoming(upload: UploadFile, max_size: int) -> IncomingFile:
    """Read the upload without ever holding more than max_size + 1 bytes."""
    name = upload.filename or "unnamed"
    if upload.size is not None and upload.size > max_size:
        raise UploadLimitError(detail=f"{name} exceeds {max_size} bytes")
    contents = await upload.read(max_size + 1)
    if len(contents) > max_size:
        raise UploadLimitError(detail=f"{name} exceeds {max_size} bytes")
    return IncomingFile(payload=contents, declared_name=name, size=len(contents))


def _to_list_response(page: Page) -> dict:
    """Convert a Page to response dict."""
    return {
        "files": page.files,
        "total": page.total,
        "page": page.page,
        "per_page": page.per_page,
        "total_pages": page.total_pages,
    }
