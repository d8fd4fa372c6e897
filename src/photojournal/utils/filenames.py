"""
Filename policy for everything that becomes a path component.

User-supplied journal ids, upload names and delete targets all pass through
sanitize_filename() before touching the filesystem.
"""

import os
import re
import time
from collections.abc import Iterable
from pathlib import Path

from ..errors import ValidationError

MAX_FILENAME_LENGTH = 100

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_DOT_RUNS = re.compile(r"\.{2,}")

DEFAULT_IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})


def sanitize_filename(value: str) -> str:
    """
    Map an arbitrary string to a safe path segment.

    Characters outside [A-Za-z0-9._-] become "_", runs of dots collapse to a
    single dot and the result is cut to 100 characters. Total and
    deterministic, but not idempotent in general.

    Args:
        value: Untrusted name

    Returns:
        str: Name matching ^[A-Za-z0-9._-]{0,100}$ without ".."
    """
    cleaned = _UNSAFE_CHARS.sub("_", value)
    cleaned = _DOT_RUNS.sub(".", cleaned)
    return cleaned[:MAX_FILENAME_LENGTH]


def safe_path_segment(value: str | None, what: str = "name") -> str:
    """
    Sanitize a path component and reject results that address the parent directory.

    Raises:
        ValidationError: If nothing usable is left after sanitizing
    """
    segment = sanitize_filename(value or "")
    if segment in ("", "."):
        raise ValidationError(
            f"Invalid {what}: {value!r}",
            code="invalid_path_segment",
            user_message=f"Invalid {what}",
            details={"value": value},
        )
    return segment


def _fit_name(cleaned: str, room: int) -> str:
    """Shorten a cleaned name to `room` characters, keeping its extension when possible."""
    if len(cleaned) <= room:
        return cleaned
    stem, suffix = os.path.splitext(cleaned)
    if not suffix or len(suffix) >= room:
        return cleaned[:room].rstrip(".")
    # a trailing dot on the stem would form ".." with the suffix
    return stem[: room - len(suffix)].rstrip(".") + suffix


def make_upload_name(original_name: str | None, now_ms: int | None = None) -> str:
    """
    Build the on-disk name <epoch-ms>-<sanitized original name> for an upload.

    The whole name fits in MAX_FILENAME_LENGTH, so passing it back through
    sanitize_filename() leaves it unchanged and delete-by-name finds the file.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    prefix = f"{now_ms}-"
    cleaned = _DOT_RUNS.sub(".", _UNSAFE_CHARS.sub("_", original_name or "upload"))
    return prefix + _fit_name(cleaned, MAX_FILENAME_LENGTH - len(prefix))


def is_image_filename(filename: str, extensions: Iterable[str] = DEFAULT_IMAGE_EXTENSIONS) -> bool:
    """True for visible files with a listed image extension, compared case-insensitively."""
    if filename.startswith("."):
        return False
    return Path(filename).suffix.lower() in extensions
