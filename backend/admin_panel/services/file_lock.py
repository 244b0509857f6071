"""Advisory single-writer lock backed by a marker file.

The marker's existence is the lock: creating it with exclusive-create
semantics acquires, deleting it releases. Because it lives on the
filesystem it also serialises separate processes sharing the volume.

There is no owner token and no expiry. A process that dies while holding
the lock leaves the marker behind and uploads stay blocked until it is
removed (see `clear_stale`).
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path

import aiofiles
import aiofiles.os

from admin_panel.errors import LockTimeoutError

logger = logging.getLogger(__name__)


class FileLock:
    """Try-lock / release capability over a lock marker file."""

    def __init__(self, lock_path: str | Path):
        self.lock_path = Path(lock_path)

    async def try_acquire(self) -> bool:
        """Create the marker if absent. Never overwrites an existing one."""
        try:
            f = await aiofiles.open(self.lock_path, "x")
        except FileExistsError:
            return False
        except OSError as e:
            logger.warning(f"Could not create lock file {self.lock_path}: {e}")
            return False

        # The marker exists now; if filling it fails it must not stay behind
        try:
            try:
                await f.write("locked")
            finally:
                await f.close()
        except OSError as e:
            logger.warning(f"Could not write lock file {self.lock_path}: {e}")
            await self.release()
            return False
        return True

    async def acquire_with_retry(self, max_attempts: int = 10, interval_ms: int = 100) -> bool:
        for attempt in range(1, max_attempts + 1):
            if await self.try_acquire():
                if attempt > 1:
                    logger.debug(f"Acquired {self.lock_path.name} on attempt {attempt}")
                return True
            if attempt < max_attempts:
                await asyncio.sleep(interval_ms / 1000)
        return False

    async def release(self) -> None:
        """Remove the marker. Failures are logged, never raised."""
        try:
            await aiofiles.os.remove(self.lock_path)
        except OSError as e:
            logger.error(f"Failed to release lock {self.lock_path}: {e}")

    @asynccontextmanager
    async def held(self, max_attempts: int = 10, interval_ms: int = 100):
        """Hold the lock for the duration of the block.

        Raises LockTimeoutError if it can't be acquired within the retry budget.
        Release runs even if the block raises.
        """
        if not await self.acquire_with_retry(max_attempts, interval_ms):
            logger.warning(
                f"Lock {self.lock_path} still busy after {max_attempts} attempts"
            )
            raise LockTimeoutError()
        try:
            yield
        finally:
            await self.release()

    def is_locked(self) -> bool:
        return self.lock_path.exists()

    async def clear_stale(self) -> bool:
        """Remove a leaked marker. Returns True if one was removed."""
        if not await aiofiles.os.path.exists(self.lock_path):
            return False
        await self.release()
        if await aiofiles.os.path.exists(self.lock_path):
            return False
        logger.warning(f"Removed stale lock file {self.lock_path}")
        return True
