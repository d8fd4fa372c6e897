"""
photojournal - Personal photo journal content server with FastAPI

A filesystem-backed content server for a personal photo site with features including:
- Moments photo wall with EXIF-derived metadata
- Travel journals stored as directories with JSON sidecar files
- Background thumbnail generation
- Authenticated management API for uploads and edits
"""

__version__ = "0.1.0"
__author__ = "photojournal"
__description__ = "Personal photo journal content server with FastAPI"
