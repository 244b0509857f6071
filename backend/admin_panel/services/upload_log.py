"""Upload Log: the JSON array that records every uploaded file.

The whole array is read and rewritten on every access; there is no
incremental format. A missing, empty or corrupt log is healed to `[]`
instead of failing the caller. Entries that are not valid file records are
skipped on load and disappear with the next rewrite.
"""
import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Optional

import aiofiles.os
from pydantic import ValidationError

from admin_panel.errors import NotFoundError, PersistenceError
from admin_panel.schemas.file import FileRecord
from admin_panel.services.json_store import read_text, write_json

logger = logging.getLogger(__name__)


@dataclass
class Page:
    """One page of the sorted log."""
    files: list[dict] = field(default_factory=list)
    total: int = 0
    page: int = 1
    per_page: int = 7
    total_pages: int = 0


def sort_key(value: Any) -> tuple:
    """Total order across JSON value types.

    null < booleans < numbers < strings < anything else (by its JSON text).
    """
    if value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    return (4, json.dumps(value, sort_keys=True, ensure_ascii=False))


def sort_records(records: Iterable[dict], sort_by: str = "id", sort_order: str = "desc") -> list[dict]:
    """Stable sort by one field; equal keys keep log order in both directions."""
    return sorted(
        records,
        key=lambda r: sort_key(r.get(sort_by)),
        reverse=sort_order.lower() == "desc",
    )


def paginate(records: list[dict], page: int, per_page: int, clamp: bool = False) -> Page:
    """Slice an already sorted list.

    With clamp=True a page past the end is pulled back to the last page
    (or 1 when the list is empty).
    """
    total = len(records)
    total_pages = math.ceil(total / per_page)
    if clamp and page > total_pages:
        page = total_pages if total_pages > 0 else 1
    start = (page - 1) * per_page
    return Page(
        files=records[start:start + per_page],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages,
    )


class UploadLogStore:
    """load / append / find / replace / remove / list over the JSON log file."""

    def __init__(self, log_path: str | Path):
        self.log_path = Path(log_path)

    async def ensure(self) -> None:
        """Create the log as `[]` if it doesn't exist yet."""
        await aiofiles.os.makedirs(self.log_path.parent, exist_ok=True)
        if not await aiofiles.os.path.exists(self.log_path):
            await write_json(self.log_path, [])
            logger.info(f"Created upload log {self.log_path}")

    async def load(self) -> list[dict]:
        try:
            text = await read_text(self.log_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Upload log unreadable, resetting to empty: {e}")
            return await self._heal()
        if text is None:
            logger.warning(f"Upload log {self.log_path} missing, creating empty log")
            return await self._heal()
        if not text:
            return []
        try:
            records = json.loads(text)
        except ValueError as e:
            logger.warning(f"Upload log is not valid JSON, resetting to empty: {e}")
            return await self._heal()
        if not isinstance(records, list):
            logger.warning("Upload log is not a JSON array, resetting to empty")
            return await self._heal()
        entries = []
        for record in records:
            try:
                entries.append(FileRecord.model_validate(record).to_document())
            except ValidationError as e:
                logger.warning(f"Ignoring malformed upload log entry {record!r}: {e.error_count()} error(s)")
        return entries

    async def _heal(self) -> list[dict]:
        await self.save([])
        return []

    async def save(self, records: list[dict]) -> None:
        try:
            await write_json(self.log_path, records)
        except OSError as e:
            logger.error(f"Failed to write upload log {self.log_path}: {e}")
            raise PersistenceError("Failed to save the upload log", detail=str(e)) from e

    async def append(self, records: list[dict]) -> list[dict]:
        """Append a batch (order preserved) and persist. Returns the full log."""
        return await self.append_to(await self.load(), records)

    async def append_to(self, loaded: list[dict], records: list[dict]) -> list[dict]:
        """Append to a log already loaded by the caller and persist it."""
        loaded.extend(records)
        await self.save(loaded)
        return loaded

    @staticmethod
    def _index_of(records: list[dict], record_id: int) -> Optional[int]:
        for i, record in enumerate(records):
            if record.get("id") == record_id:
                return i
        return None

    async def find_by_id(self, record_id: int) -> Optional[dict]:
        records = await self.load()
        index = self._index_of(records, record_id)
        return records[index] if index is not None else None

    async def replace(self, record_id: int, overrides: dict) -> dict:
        """Merge the non-None fields of `overrides` into the record and persist."""
        records = await self.load()
        index = self._index_of(records, record_id)
        if index is None:
            raise NotFoundError()
        updated = {
            **records[index],
            **{k: v for k, v in overrides.items() if v is not None},
        }
        records[index] = updated
        await self.save(records)
        return updated

    async def remove(self, record_id: int) -> tuple[dict, list[dict]]:
        """Delete the record and persist. Returns (removed record, remaining log)."""
        records = await self.load()
        index = self._index_of(records, record_id)
        if index is None:
            raise NotFoundError()
        removed = records.pop(index)
        await self.save(records)
        return removed, records

    async def list_page(
        self,
        sort_by: str = "id",
        sort_order: str = "desc",
        page: int = 1,
        per_page: int = 7,
    ) -> Page:
        records = sort_records(await self.load(), sort_by, sort_order)
        return paginate(records, page, per_page)
