"""Whole-file JSON persistence shared by the log, counter and image-scroll stores.

Writes go to a sibling temp file first and are moved into place with
os.replace, so readers never see a half-written document.
"""
import json
import uuid
from pathlib import Path
from typing import Any, Optional

import aiofiles
import aiofiles.os

BOM = "\ufeff"


async def read_text(path: Path) -> Optional[str]:
    """Return the file's text with BOM and surrounding whitespace stripped, or None if missing."""
    try:
        async with aiofiles.open(path, "r", encoding="utf-8") as f:
            text = await f.read()
    except FileNotFoundError:
        return None
    return text.strip().lstrip(BOM).strip()


async def write_json(path: Path, data: Any, indent: Optional[int] = 2) -> None:
    """Rewrite `path` with `data` serialised as JSON. Raises OSError on failure."""
    await aiofiles.os.makedirs(path.parent, exist_ok=True)
    tmp_path = path.with_name(f"{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(data, indent=indent, ensure_ascii=False))
        await aiofiles.os.replace(tmp_path, path)
    except OSError:
        if await aiofiles.os.path.exists(tmp_path):
            await aiofiles.os.remove(tmp_path)
        raise
