"""
Filename helpers for staged uploads.

Stored payloads are named `{ms-timestamp}-{9-digit random}-{sanitized name}`
so two uploads of the same file never collide on disk.
"""
import random
import re
import time
from pathlib import Path
from urllib.parse import unquote

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")


def fix_latin1_name(name: str) -> str:
    """
    Undo the Latin-1 mis-decoding some multipart clients cause.

    A UTF-8 name such as "報告.pdf" can arrive with each UTF-8 byte decoded
    as one Latin-1 character. Re-encoding as Latin-1 recovers
    the bytes, which are then decoded as UTF-8 and percent-decoded.

    Names that were already decoded correctly (characters above U+00FF, or
    bytes that are not valid UTF-8) are only percent-decoded.

    Args:
        name: Filename as received from the multipart parser

    Returns:
        Corrected filename
    """
    try:
        name = name.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        pass
    return unquote(name)


def sanitize_name(name: str) -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore."""
    return _UNSAFE_CHARS.sub("_", name)


def generate_stored_name(original_name: str) -> str:
    """
    Build the collision-resistant on-disk name for an upload.

    Example:
        "my report.pdf" -> "1718000000000-482913377-my_report.pdf"
    """
    timestamp = int(time.time() * 1000)
    suffix = random.randint(100_000_000, 999_999_999)
    return f"{timestamp}-{suffix}-{sanitize_name(original_name)}"


def file_type_of(file_name: str) -> str:
    """Extension without the leading dot ("" if there is none)."""
    return Path(file_name).suffix[1:]
