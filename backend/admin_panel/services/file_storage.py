"""File storage for uploaded payloads. Local filesystem directory."""
import logging
from dataclasses import dataclass
from pathlib import Path

import aiofiles
import aiofiles.os

from admin_panel.errors import NotFoundError
from admin_panel.utils.filenames import fix_latin1_name, generate_stored_name

logger = logging.getLogger(__name__)


@dataclass
class StagedFile:
    """A payload written to the storage directory, not yet in the log."""
    file_name: str
    original_name: str
    size: int


class FileStorageService:
    """Handles payload write/delete under the storage directory."""

    def __init__(self, storage_dir: str | Path, fix_latin1: bool = True):
        self.base_path = Path(storage_dir)
        self.fix_latin1 = fix_latin1

    async def ensure(self) -> None:
        await aiofiles.os.makedirs(self.base_path, exist_ok=True)

    def original_name(self, declared_name: str) -> str:
        return fix_latin1_name(declared_name) if self.fix_latin1 else declared_name

    async def stage(self, file_bytes: bytes, declared_name: str) -> StagedFile:
        """Write the payload under a generated unique name."""
        original_name = self.original_name(declared_name or "unnamed")
        filename = generate_stored_name(original_name)
        async with aiofiles.open(self.base_path / filename, "wb") as f:
            await f.write(file_bytes)
        logger.debug(f"Staged {original_name!r} as {filename}")
        return StagedFile(file_name=filename, original_name=original_name, size=len(file_bytes))

    def path_for(self, file_name: str) -> Path:
        """Resolve a stored name to its payload path. Raises NotFoundError if absent."""
        if not file_name or Path(file_name).name != file_name or file_name in (".", ".."):
            raise NotFoundError("File does not exist")
        path = self.base_path / file_name
        if not path.is_file():
            raise NotFoundError("File does not exist")
        return path

    async def delete(self, file_name: str) -> bool:
        """Best-effort payload delete. Failures are logged, never raised."""
        path = self.base_path / file_name
        try:
            await aiofiles.os.remove(path)
            return True
        except OSError as e:
            logger.error(f"Failed to delete payload {path}: {e}")
            return False
