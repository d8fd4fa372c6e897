"""
Models module for photojournal.

This module contains the content records:
- Photo: metadata view synthesized from an image file
- JournalInfo: a journal's info.json sidecar
- default_about: empty About/profile record
"""

from .about import default_about
from .journal import DEFAULT_COVER, JournalInfo
from .photo import Photo, format_timestamp, sort_newest_first

__all__ = [
    "DEFAULT_COVER",
    "JournalInfo",
    "Photo",
    "default_about",
    "format_timestamp",
    "sort_newest_first",
]
