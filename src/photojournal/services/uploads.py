"""
Upload pipeline: validation, naming and destination policy per collection.

The HTTP layer converts multipart parts into IncomingFile objects; this
module decides whether a batch is acceptable, where each file goes and what
it is called, and queues moments thumbnails.
"""

import os
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from ..config import AppConfig
from ..errors import NotFoundError, PhotoJournalError, StorageError, ValidationError
from ..logging_config import get_logger
from ..models.journal import DEFAULT_COVER
from ..utils.filenames import make_upload_name, safe_path_segment
from .storage import JournalRepository, MomentsRepository
from .thumbnails import ThumbnailQueue

logger = get_logger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass
class IncomingFile:
    """One uploaded file part."""

    filename: str | None
    content_type: str | None
    stream: BinaryIO
    size: int | None = None


class UploadService:
    """Stores uploaded images for moments, journals and the profile photo."""

    def __init__(
        self,
        config: AppConfig,
        moments: MomentsRepository,
        journals: JournalRepository,
        thumbnails: ThumbnailQueue,
    ) -> None:
        self.config = config
        self.moments = moments
        self.journals = journals
        self.thumbnails = thumbnails

    # Validation

    def _too_large(self, filename: str | None) -> ValidationError:
        return ValidationError(
            f"File '{filename}' exceeds {self.config.max_file_size} bytes",
            code="file_too_large",
            user_message=f"File too large. Maximum size is {self.config.max_file_size_mb}MB.",
            details={"filename": filename, "max_size": self.config.max_file_size},
        )

    def validate_batch(self, files: Sequence[IncomingFile], max_files: int | None = None) -> None:
        """
        Check count, MIME type and declared size for the whole batch before anything is written.

        Raises:
            ValidationError: On the first violated limit
        """
        max_files = self.config.max_files if max_files is None else max_files

        if not files:
            raise ValidationError("Upload contained no files", code="no_files", user_message="No files uploaded")

        if len(files) > max_files:
            raise ValidationError(
                f"Upload contained {len(files)} files, limit is {max_files}",
                code="too_many_files",
                user_message=f"Too many files. Maximum is {max_files} files.",
                details={"file_count": len(files), "max_files": max_files},
            )

        for incoming in files:
            if incoming.content_type not in self.config.allowed_mime_types:
                raise ValidationError(
                    f"File '{incoming.filename}' has type {incoming.content_type}",
                    code="invalid_file_type",
                    user_message="Invalid file type. Only JPEG, PNG and WebP are allowed.",
                    details={"filename": incoming.filename, "content_type": incoming.content_type},
                )
            if incoming.size is not None and incoming.size > self.config.max_file_size:
                raise self._too_large(incoming.filename)

    # Writing

    def _write_failed(self, destination: Path, error: OSError) -> StorageError:
        return StorageError(
            f"Failed to store upload {destination.name}: {error}",
            code="upload_write_failed",
            user_message="Failed to save upload",
            details={"destination": str(destination)},
            original_exception=error,
        )

    def _stage(self, incoming: IncomingFile, destination: Path, index: int) -> Path:
        """
        Stream a file to a hidden staging name beside its destination.

        The size limit is enforced while copying; on any failure the staged
        copy is removed before the error propagates.
        """
        partial = destination.with_name(f".{destination.name}.{index}.part")
        written = 0

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with partial.open("wb") as buffer:
                while chunk := incoming.stream.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.config.max_file_size:
                        raise self._too_large(incoming.filename)
                    buffer.write(chunk)
        except PhotoJournalError:
            partial.unlink(missing_ok=True)
            raise
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise self._write_failed(destination, e) from e

        logger.debug("upload_staged", destination=str(destination), bytes=written)
        return partial

    def _store_batch(self, files: Sequence[IncomingFile], destinations: list[Path]) -> list[Path]:
        """
        Stage every file of the batch, then move them into place in order.

        A file failing while it is received leaves every destination as it
        was, including files the batch would have replaced.
        """
        staged: list[Path] = []
        try:
            for index, (incoming, destination) in enumerate(zip(files, destinations)):
                staged.append(self._stage(incoming, destination, index))

            for partial, destination in zip(staged, destinations):
                try:
                    os.replace(partial, destination)
                except OSError as e:
                    raise self._write_failed(destination, e) from e
        finally:
            for partial in staged:
                partial.unlink(missing_ok=True)

        return list(destinations)

    def _unique_destinations(self, directory: Path, files: Sequence[IncomingFile], now_ms: int) -> list[Path]:
        """
        Timestamped destinations that clash neither with each other nor with existing files.

        A clash moves the file's timestamp forward one millisecond at a time.
        """
        taken: set[str] = set()
        destinations = []
        for incoming in files:
            stamp = now_ms
            name = make_upload_name(incoming.filename, stamp)
            while name in taken or (directory / name).exists():
                stamp += 1
                name = make_upload_name(incoming.filename, stamp)
            taken.add(name)
            destinations.append(directory / name)
        return destinations

    # Collections

    def upload_moments(self, files: Sequence[IncomingFile]) -> list[str]:
        """
        Store moments photos as <epoch-ms>-<name> and queue one thumbnail per file.

        Returns:
            list[str]: On-disk filenames
        """
        self.validate_batch(files)

        now_ms = int(time.time() * 1000)
        destinations = self._unique_destinations(self.moments.root, files, now_ms)
        stored = self._store_batch(files, destinations)

        for path in stored:
            self.thumbnails.submit(path, self.moments.thumbnails_root / path.name)

        logger.info("moments_uploaded", count=len(stored), files=[path.name for path in stored])
        return [path.name for path in stored]

    def upload_journal_photos(self, journal_id: str, files: Sequence[IncomingFile], cover: bool = False) -> list[str]:
        """
        Store photos in a journal directory.

        In cover mode the file is saved as cover.jpg, replacing the previous cover.

        Raises:
            NotFoundError: If the journal does not exist
        """
        safe_id = safe_path_segment(journal_id, "journal id")
        if not self.journals.exists(safe_id):
            raise NotFoundError(
                f"Upload target journal does not exist: {safe_id}",
                code="journal_not_found",
                user_message="Journal not found",
                details={"journal_id": safe_id},
            )

        self.validate_batch(files)

        directory = self.journals.journal_dir(safe_id)
        now_ms = int(time.time() * 1000)
        if cover:
            destinations = [directory / DEFAULT_COVER for _ in files]
        else:
            destinations = self._unique_destinations(directory, files, now_ms)

        stored = self._store_batch(files, destinations)
        logger.info("journal_photos_uploaded", journal_id=safe_id, count=len(stored), cover=cover)
        return [path.name for path in stored]

    def upload_profile_photo(self, incoming: IncomingFile | None) -> str:
        """
        Overwrite the profile image.

        Returns:
            str: Public URL with a cache-busting timestamp
        """
        self.validate_batch([incoming] if incoming else [], max_files=1)

        (path,) = self._store_batch([incoming], [self.config.profile_image_path])
        logger.info("profile_photo_uploaded", destination=str(path))
        return f"/assets/{path.name}?t={int(time.time() * 1000)}"
