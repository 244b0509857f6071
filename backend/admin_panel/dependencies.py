"""Service wiring: builds the store objects from Settings.

Usage in routes:
    from admin_panel.dependencies import Services, get_services

    @router.get("/files")
    async def list_files(services: Services = Depends(get_services)):
        page = await services.catalog.list_files()
"""
from dataclasses import dataclass
from functools import lru_cache

from admin_panel.config import Settings, settings
from admin_panel.services.file_catalog import FileCatalog
from admin_panel.services.file_lock import FileLock
from admin_panel.services.file_storage import FileStorageService
from admin_panel.services.id_allocator import IdAllocator
from admin_panel.services.img_scroll import ImgScrollService
from admin_panel.services.upload_log import UploadLogStore
from admin_panel.services.upload_pipeline import UploadPipeline


@dataclass
class Services:
    settings: Settings
    storage: FileStorageService
    upload_log: UploadLogStore
    id_allocator: IdAllocator
    upload_lock: FileLock
    pipeline: UploadPipeline
    catalog: FileCatalog
    img_scroll: ImgScrollService


def build_services(cfg: Settings) -> Services:
    storage = FileStorageService(cfg.STORAGE_DIR, fix_latin1=cfg.FIX_LATIN1_FILENAMES)
    upload_log = UploadLogStore(cfg.UPLOAD_LOG_PATH)
    id_allocator = IdAllocator(cfg.ID_COUNTER_PATH)
    upload_lock = FileLock(cfg.LOCK_FILE_PATH)
    pipeline = UploadPipeline(
        storage,
        upload_log,
        id_allocator,
        upload_lock,
        max_files=cfg.MAX_UPLOAD_FILES,
        max_file_size=cfg.MAX_FILE_SIZE,
        lock_max_attempts=cfg.LOCK_MAX_ATTEMPTS,
        lock_retry_interval_ms=cfg.LOCK_RETRY_INTERVAL_MS,
        uploader_name=cfg.DEFAULT_UPLOADER,
        default_status=cfg.DEFAULT_STATUS,
    )
    img_scroll = ImgScrollService(
        cfg.IMG_SCROLL_DATA_PATH,
        IdAllocator(cfg.IMG_SCROLL_COUNTER_PATH, key="currentIndexPartId"),
        cfg.IMG_STYLES_DIR,
    )
    return Services(
        settings=cfg,
        storage=storage,
        upload_log=upload_log,
        id_allocator=id_allocator,
        upload_lock=upload_lock,
        pipeline=pipeline,
        catalog=FileCatalog(storage, upload_log, id_allocator),
        img_scroll=img_scroll,
    )


@lru_cache
def get_services() -> Services:
    """FastAPI dependency returning the process-wide services."""
    return build_services(settings)
