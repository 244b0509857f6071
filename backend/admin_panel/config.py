"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All config comes from env vars or .env.backend file."""

    API_PORT: int = 3000
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:5174"
    LOG_LEVEL: str = "INFO"

    # Upload log and payload storage
    STORAGE_DIR: str = "./backend/uploads"
    UPLOAD_LOG_PATH: str = "./backend/data/uploadLog.json"
    ID_COUNTER_PATH: str = "./backend/data/idCounter.json"
    LOCK_FILE_PATH: str = "./backend/data/upload.lock"

    # Upload limits
    MAX_UPLOAD_FILES: int = 10
    MAX_FILE_SIZE: int = 10 * 1024 * 1024

    # Lock retry policy: give up after ~1s
    LOCK_MAX_ATTEMPTS: int = 10
    LOCK_RETRY_INTERVAL_MS: int = 100
    CLEAR_STALE_LOCK_ON_STARTUP: bool = False

    # Record defaults
    DEFAULT_PER_PAGE: int = 7
    DEFAULT_UPLOADER: str = "System"
    DEFAULT_STATUS: str = "complete"

    # Some clients send UTF-8 names that arrive decoded as Latin-1
    FIX_LATIN1_FILENAMES: bool = True

    # Image scroll content blocks
    IMG_SCROLL_DATA_PATH: str = "./backend/data/imgScrollData.json"
    IMG_SCROLL_COUNTER_PATH: str = "./backend/data/imgScrollCounter.json"
    IMG_STYLES_DIR: str = "./backend/uploads/imgStyles"

    class Config:
        env_file = ".env.backend"
        env_file_encoding = "utf-8"


settings = Settings()
