"""
Filesystem-backed content repositories.

The filesystem is the only store: moments are image files in one directory,
journals are directories with an info.json sidecar, and the About record is a
single JSON document. Route handlers only talk to these repositories, so the
layout conventions live here and nowhere else.
"""

import json
import shutil
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

from ..config import AppConfig
from ..errors import NotFoundError, StorageError, ValidationError
from ..logging_config import get_logger, log_performance
from ..models.about import default_about
from ..models.journal import JournalInfo
from ..models.photo import Photo, sort_newest_first
from ..utils.filenames import is_image_filename, safe_path_segment
from .image_processor import ImageProcessor

logger = get_logger(__name__)

INFO_FILENAME = "info.json"


def write_json(path: Path, data: Any) -> None:
    """Write pretty-printed UTF-8 JSON, creating the parent directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


class Repository(ABC):
    """Base class for a file-backed collection."""

    def __init__(self, config: AppConfig, processor: ImageProcessor | None = None) -> None:
        self.config = config
        self.processor = processor or ImageProcessor(config.thumbnail_size, config.thumbnail_quality)

    @property
    @abstractmethod
    def root(self) -> Path:
        """Directory holding the collection."""

    def _extract_all(self, directory: Path, filenames: list[str], url_prefix: str) -> list[Photo]:
        start_time = datetime.now()
        photos = [self.processor.extract_photo(directory / name, f"{url_prefix}/{name}") for name in filenames]
        log_performance(
            "extract_directory",
            (datetime.now() - start_time).total_seconds(),
            directory=str(directory),
            photo_count=len(photos),
        )
        return sort_newest_first(photos)


class MomentsRepository(Repository):
    """The photo wall: originals in moments/images, thumbnails in moments/thumbnails."""

    URL_PREFIX = "/images"

    @property
    def root(self) -> Path:
        return self.config.moments_images_dir

    @property
    def thumbnails_root(self) -> Path:
        return self.config.moments_thumbnails_dir

    def image_path(self, filename: str) -> Path:
        return self.root / safe_path_segment(filename, "filename")

    def thumbnail_path(self, filename: str) -> Path:
        return self.thumbnails_root / safe_path_segment(filename, "filename")

    def list_photos(self) -> list[Photo]:
        """
        List every moments image, newest first.

        Raises:
            StorageError: If the images directory cannot be read
        """
        try:
            filenames = [
                entry.name
                for entry in self.root.iterdir()
                if is_image_filename(entry.name, self.config.image_extensions)
            ]
        except OSError as e:
            raise StorageError(
                f"Failed to read moments directory: {e}",
                code="moments_read_failed",
                user_message="Failed to read photos",
                details={"directory": str(self.root)},
                original_exception=e,
            ) from e

        return self._extract_all(self.root, filenames, self.URL_PREFIX)

    def delete_photo(self, filename: str) -> str:
        """
        Delete an image by its on-disk name, then its thumbnail if present.

        Returns:
            str: The sanitized filename that was removed

        Raises:
            NotFoundError: If no such image exists
        """
        path = self.image_path(filename)
        try:
            path.unlink()
        except OSError as e:
            raise NotFoundError(
                f"Moments photo not found: {path.name}",
                code="photo_not_found",
                user_message="File not found",
                details={"filename": path.name},
                original_exception=e,
            ) from e

        try:
            self.thumbnail_path(filename).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("thumbnail_delete_failed", filename=path.name, error=str(e))

        logger.info("moments_photo_deleted", filename=path.name)
        return path.name


class JournalRepository(Repository):
    """Journals: one directory per journal with an info.json sidecar and its photos."""

    URL_PREFIX = "/content/journals"

    @property
    def root(self) -> Path:
        return self.config.journals_dir

    def journal_dir(self, journal_id: str) -> Path:
        return self.root / safe_path_segment(journal_id, "journal id")

    def cover_url(self, journal_id: str, cover: str | None) -> str | None:
        if not cover:
            return None
        return f"{self.URL_PREFIX}/{journal_id}/{cover}"

    def read_info(self, journal_id: str) -> JournalInfo:
        """
        Load a journal's info.json.

        Raises:
            NotFoundError: If the sidecar is missing or unparsable
        """
        info_path = self.journal_dir(journal_id) / INFO_FILENAME
        try:
            return JournalInfo.from_dict(json.loads(info_path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            raise NotFoundError(
                f"Journal not found: {journal_id}",
                code="journal_not_found",
                user_message="Journal not found",
                details={"journal_id": journal_id},
                original_exception=e,
            ) from e

    def exists(self, journal_id: str) -> bool:
        return (self.journal_dir(journal_id) / INFO_FILENAME).is_file()

    def list_journals(self) -> list[dict[str, Any]]:
        """
        Summaries of all readable journals, newest date first.

        Entries whose info.json is missing or corrupt are skipped.
        """
        if not self.root.is_dir():
            return []

        try:
            entries = [entry for entry in self.root.iterdir() if entry.is_dir()]
        except OSError as e:
            raise StorageError(
                f"Failed to read journals directory: {e}",
                code="journals_read_failed",
                user_message="Failed to get journals",
                details={"directory": str(self.root)},
                original_exception=e,
            ) from e

        journals: list[tuple[JournalInfo, dict[str, Any]]] = []
        for entry in entries:
            info_path = entry / INFO_FILENAME
            try:
                info = JournalInfo.from_dict(json.loads(info_path.read_text(encoding="utf-8")))
            except (OSError, ValueError) as e:
                logger.debug("journal_skipped", journal_id=entry.name, error=str(e))
                continue
            journals.append(
                (info, {"id": entry.name, **info.to_dict(), "cover": self.cover_url(entry.name, info.cover)})
            )

        journals.sort(key=lambda item: item[0].sort_key(), reverse=True)
        return [summary for _, summary in journals]

    def get_journal(self, journal_id: str) -> dict[str, Any]:
        """
        Full journal record including its photos, newest first.

        Raises:
            NotFoundError: If the journal has no readable info.json
        """
        safe_id = safe_path_segment(journal_id, "journal id")
        info = self.read_info(safe_id)
        directory = self.journal_dir(safe_id)

        try:
            filenames = [
                entry.name
                for entry in directory.iterdir()
                if entry.name != info.cover and is_image_filename(entry.name, self.config.image_extensions)
            ]
        except OSError as e:
            raise NotFoundError(
                f"Journal directory unreadable: {safe_id}",
                code="journal_not_found",
                user_message="Journal not found",
                original_exception=e,
            ) from e

        photos = self._extract_all(directory, filenames, f"{self.URL_PREFIX}/{safe_id}")
        return {
            "id": safe_id,
            **info.to_dict(),
            "cover": self.cover_url(safe_id, info.cover),
            "photos": [photo.to_dict() for photo in photos],
        }

    def create_journal(
        self,
        journal_id: str,
        title: str | None = None,
        journal_date: str | None = None,
        description: str | None = None,
    ) -> str:
        """
        Create a journal directory and its info.json.

        An existing journal with the same id gets a fresh info.json; its photos stay.

        Returns:
            str: The sanitized journal id
        """
        safe_id = safe_path_segment(journal_id, "journal id")
        info = JournalInfo.create_new(title, journal_date, description)
        directory = self.journal_dir(safe_id)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            write_json(directory / INFO_FILENAME, info.to_dict())
        except OSError as e:
            raise StorageError(
                f"Failed to create journal {safe_id}: {e}",
                code="journal_create_failed",
                user_message="Failed to create journal",
                details={"journal_id": safe_id},
                original_exception=e,
            ) from e

        logger.info("journal_created", journal_id=safe_id, title=info.title)
        return safe_id

    def update_journal(
        self,
        journal_id: str,
        title: str | None = None,
        journal_date: str | None = None,
        description: str | None = None,
    ) -> JournalInfo:
        """
        Merge an update into an existing info.json.

        Raises:
            NotFoundError: If the journal does not exist
        """
        safe_id = safe_path_segment(journal_id, "journal id")
        info = self.read_info(safe_id).merge(title, journal_date, description)

        try:
            write_json(self.journal_dir(safe_id) / INFO_FILENAME, info.to_dict())
        except OSError as e:
            raise StorageError(
                f"Failed to update journal {safe_id}: {e}",
                code="journal_update_failed",
                user_message="Failed to update journal",
                details={"journal_id": safe_id},
                original_exception=e,
            ) from e

        logger.info("journal_updated", journal_id=safe_id)
        return info

    def delete_journal(self, journal_id: str) -> str:
        """
        Remove a journal directory recursively.

        Raises:
            NotFoundError: If no such journal directory exists
        """
        directory = self.journal_dir(journal_id)
        if not directory.is_dir():
            raise NotFoundError(
                f"Journal not found: {directory.name}",
                code="journal_not_found",
                user_message="Journal not found",
                details={"journal_id": directory.name},
            )

        try:
            shutil.rmtree(directory)
        except OSError as e:
            raise StorageError(
                f"Failed to delete journal {directory.name}: {e}",
                code="journal_delete_failed",
                user_message="Failed to delete journal",
                details={"journal_id": directory.name},
                original_exception=e,
            ) from e

        logger.info("journal_deleted", journal_id=directory.name)
        return directory.name

    def delete_photo(self, journal_id: str, filename: str) -> str:
        """
        Remove one file from a journal directory.

        Raises:
            ValidationError: If the target is the info.json sidecar
            NotFoundError: If the file does not exist
        """
        safe_name = safe_path_segment(filename, "filename")
        if safe_name == INFO_FILENAME:
            raise ValidationError(
                "Refusing to delete journal metadata through the photo API",
                code="protected_file",
                user_message="Cannot delete journal metadata",
            )

        path = self.journal_dir(journal_id) / safe_name
        try:
            path.unlink()
        except OSError as e:
            raise NotFoundError(
                f"Journal photo not found: {path}",
                code="photo_not_found",
                user_message="File not found",
                details={"journal_id": path.parent.name, "filename": safe_name},
                original_exception=e,
            ) from e

        logger.info("journal_photo_deleted", journal_id=path.parent.name, filename=safe_name)
        return safe_name


class AboutRepository:
    """The single About/profile JSON document."""

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    @property
    def path(self) -> Path:
        return self.config.about_path

    def get(self) -> dict[str, Any]:
        """Stored About record, or the empty default if it is missing or unparsable."""
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.debug("about_record_default", reason=str(e))
            return default_about()

        if not isinstance(data, dict):
            logger.debug("about_record_default", reason="not a JSON object")
            return default_about()
        return data

    def replace(self, record: dict[str, Any]) -> None:
        """Overwrite the About record wholesale."""
        try:
            write_json(self.path, record)
        except OSError as e:
            raise StorageError(
                f"Failed to save about record: {e}",
                code="about_write_failed",
                user_message="Failed to save about info",
                original_exception=e,
            ) from e
        logger.info("about_record_saved")
