"""
Services module for photojournal.

This module contains the classes that hold the domain logic:
- ImageProcessor: EXIF metadata extraction and thumbnail generation
- ThumbnailQueue: background thumbnail worker
- MomentsRepository, JournalRepository, AboutRepository: filesystem-backed content
- UploadService: upload validation, naming and destination policy
"""

from .image_processor import ImageProcessor
from .storage import AboutRepository, JournalRepository, MomentsRepository, Repository
from .thumbnails import ThumbnailQueue
from .uploads import IncomingFile, UploadService

__all__ = [
    "AboutRepository",
    "ImageProcessor",
    "IncomingFile",
    "JournalRepository",
    "MomentsRepository",
    "Repository",
    "ThumbnailQueue",
    "UploadService",
]
