"""Image scroll content blocks and their per-style images.

Data lives in one JSON document `{"indexPartList": [...]}`; block ids come
from their own counter file. Style images are stored as
`{indexPartId}_{style}{ext}` in the styles directory.

No locking here: concurrent edits are last-write-wins.
"""
import json
import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from admin_panel.errors import InvalidImageError, NotFoundError, PersistenceError
from admin_panel.services.id_allocator import IdAllocator
from admin_panel.services.json_store import read_text, write_json

logger = logging.getLogger(__name__)

STYLES = ("STYLE_A", "STYLE_B")
IMAGE_EXTENSIONS = (".jpg", ".png", ".gif", ".svg")
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/svg+xml": ".svg",
}


def empty_data() -> dict:
    return {"indexPartList": []}


class ImgScrollService:
    def __init__(self, data_path: str | Path, counter: IdAllocator, styles_dir: str | Path):
        self.data_path = Path(data_path)
        self.counter = counter
        self.styles_dir = Path(styles_dir)

    async def get_data(self) -> dict:
        """Load the document, healing a missing or corrupt file to an empty list."""
        try:
            text = await read_text(self.data_path)
            data = json.loads(text) if text else None
        except (OSError, ValueError) as e:
            logger.warning(f"Image scroll data unreadable, resetting: {e}")
            data = None
        if not isinstance(data, dict) or not isinstance(data.get("indexPartList"), list):
            data = empty_data()
            await self.update_data(data)
        return data

    async def update_data(self, data: dict) -> None:
        try:
            await write_json(self.data_path, data)
        except OSError as e:
            raise PersistenceError("Failed to save image scroll data", detail=str(e)) from e

    async def add_block(self, block: dict) -> dict:
        data = await self.get_data()
        block = {**block, "indexPartId": await self.counter.next_id()}
        data["indexPartList"].append(block)
        await self.update_data(data)
        logger.info(f"Added image scroll block {block['indexPartId']}")
        return data

    async def delete_block(self, index_part_id: int) -> dict:
        data = await self.get_data()
        blocks = data["indexPartList"]
        remaining = [b for b in blocks if not _has_id(b, index_part_id)]
        if len(remaining) == len(blocks):
            raise NotFoundError("Block not found")

        for style in STYLES:
            await self._remove_style_images(index_part_id, style)

        data["indexPartList"] = remaining
        await self.update_data(data)
        logger.info(f"Deleted image scroll block {index_part_id}")
        return data

    async def save_style_image(
        self,
        index_part_id: int,
        style: str,
        payload: bytes,
        declared_name: str,
        content_type: str | None,
    ) -> str:
        """Store a style image, replacing any earlier one for the same block/style."""
        if content_type not in ALLOWED_IMAGE_TYPES:
            raise InvalidImageError(detail=content_type)
        ext = Path(declared_name or "").suffix.lower()
        if ext not in IMAGE_EXTENSIONS:
            ext = ALLOWED_IMAGE_TYPES[content_type]

        await aiofiles.os.makedirs(self.styles_dir, exist_ok=True)
        await self._remove_style_images(index_part_id, style)
        filename = f"{index_part_id}_{style}{ext}"
        async with aiofiles.open(self.styles_dir / filename, "wb") as f:
            await f.write(payload)
        logger.info(f"Saved style image {filename}")
        return filename

    async def _remove_style_images(self, index_part_id: int, style: str) -> None:
        for ext in IMAGE_EXTENSIONS:
            path = self.styles_dir / f"{index_part_id}_{style}{ext}"
            try:
                await aiofiles.os.remove(path)
                logger.debug(f"Removed style image {path}")
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error(f"Failed to remove style image {path}: {e}")


def _has_id(block, index_part_id: int) -> bool:
    return isinstance(block, dict) and block.get("indexPartId") == index_part_id
