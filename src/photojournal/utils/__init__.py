"""Utility helpers for photojournal."""

from .filenames import is_image_filename, make_upload_name, safe_path_segment, sanitize_filename

__all__ = [
    "is_image_filename",
    "make_upload_name",
    "safe_path_segment",
    "sanitize_filename",
]
