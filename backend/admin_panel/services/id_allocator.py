"""Monotonic integer IDs backed by a small JSON counter file.

The counter file holds `{"<key>": <last issued id>}`. Reads are soft: a
missing or corrupt file counts as 0. Writes are hard: if the new value can't
be persisted the allocation fails with AllocationError.
"""
import asyncio
import json
import logging
from pathlib import Path

from admin_panel.errors import AllocationError, PersistenceError
from admin_panel.services.json_store import read_text, write_json

logger = logging.getLogger(__name__)


class IdAllocator:
    """Issues increasing IDs from a persisted counter."""

    def __init__(self, counter_path: str | Path, key: str = "currentId"):
        self.counter_path = Path(counter_path)
        self.key = key
        # Read-increment-write is not atomic on disk; serialise it within the process
        self._lock = asyncio.Lock()

    async def current(self) -> int:
        """Last issued ID, or 0 if nothing was issued yet."""
        try:
            text = await read_text(self.counter_path)
            if not text:
                return 0
            value = json.loads(text).get(self.key, 0)
        except (OSError, ValueError, AttributeError) as e:
            logger.debug(f"Counter {self.counter_path} unreadable, treating as 0: {e}")
            return 0
        if isinstance(value, bool) or not isinstance(value, int):
            return 0
        return value

    async def next_id(self) -> int:
        async with self._lock:
            next_id = await self.current() + 1
            try:
                await write_json(self.counter_path, {self.key: next_id}, indent=None)
            except OSError as e:
                logger.error(f"Failed to persist counter {self.counter_path}: {e}")
                raise AllocationError(detail=str(e)) from e
            return next_id

    async def reset(self, value: int = 0) -> None:
        """Overwrite the counter unconditionally. The next ID issued is value + 1."""
        async with self._lock:
            try:
                await write_json(self.counter_path, {self.key: value}, indent=None)
            except OSError as e:
                raise PersistenceError("Failed to reset the ID counter", detail=str(e)) from e
        logger.info(f"ID counter {self.counter_path.name} reset to {value}")
