"""Image processing service for photojournal."""

import os
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from PIL import ExifTags, Image, ImageOps

from ..logging_config import get_logger, log_error, log_performance
from ..models.photo import Photo

logger = get_logger(__name__)

EXIF_DATE_PATTERN = re.compile(r"(\d{4}):(\d{2}):(\d{2}) (\d{2}):(\d{2}):(\d{2})")


class ImageProcessor:
    """Service for reading image metadata and deriving thumbnails."""

    # EXIF date tags in priority order
    EXIF_DATE_TAGS = [
        "DateTimeOriginal",  # When photo was taken
        "DateTime",  # When file was modified
    ]

    def __init__(self, thumbnail_size: int = 400, thumbnail_quality: int = 80) -> None:
        """
        Initialize the image processor.

        Args:
            thumbnail_size: Edge length of the square thumbnail in pixels
            thumbnail_quality: JPEG quality for thumbnails (1-100)
        """
        self.thumbnail_size = thumbnail_size
        self.thumbnail_quality = thumbnail_quality

    def read_exif(self, image: Image.Image) -> dict[str, Any]:
        """
        Collect EXIF tags by name from the main IFD and the Exif sub-IFD.

        A malformed EXIF block is treated as no EXIF at all.

        Args:
            image: Opened Pillow image

        Returns:
            dict: Tag name to value, empty when the image carries no readable EXIF
        """
        try:
            exif = image.getexif()
            tags = {ExifTags.TAGS.get(tag_id, tag_id): value for tag_id, value in exif.items()}
            sub_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            tags.update({ExifTags.TAGS.get(tag_id, tag_id): value for tag_id, value in sub_ifd.items()})
            return tags
        except Exception as e:
            logger.debug("exif_parse_failed", error=str(e))
            return {}

    @staticmethod
    def parse_exif_date(value: Any) -> datetime | None:
        """
        Parse an EXIF "YYYY:MM:DD HH:MM:SS" string.

        EXIF dates carry no zone; they are read as server-local time.

        Args:
            value: Raw tag value

        Returns:
            datetime: Aware datetime, or None if the value does not match
        """
        if isinstance(value, bytes):
            value = value.decode("ascii", errors="ignore")
        if not isinstance(value, str):
            return None

        match = EXIF_DATE_PATTERN.search(value)
        if not match:
            return None

        try:
            return datetime(*(int(part) for part in match.groups())).astimezone()
        except (ValueError, OverflowError, OSError):
            logger.debug("exif_date_out_of_range", date_string=value)
            return None

    def resolve_date_taken(self, exif: dict[str, Any], stat: os.stat_result) -> datetime:
        """
        Pick the best available capture date.

        Precedence: DateTimeOriginal, DateTime, filesystem creation time,
        filesystem modification time.
        """
        for tag_name in self.EXIF_DATE_TAGS:
            date_value = self.parse_exif_date(exif.get(tag_name))
            if date_value:
                return date_value

        birthtime = getattr(stat, "st_birthtime", None)
        if birthtime:
            return datetime.fromtimestamp(birthtime, UTC)

        return datetime.fromtimestamp(stat.st_mtime, UTC)

    @staticmethod
    def _clean_text(value: Any) -> str:
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="ignore")
        if value is None:
            return ""
        return str(value).strip("\x00 ").strip()

    def extract_photo(self, file_path: Path, public_url: str) -> Photo:
        """
        Build the Photo record for an image file.

        Never raises: unreadable files produce a degraded record with empty
        camera/lens, zero dimensions and the current time.

        Args:
            file_path: Image on disk
            public_url: URL the image is served under

        Returns:
            Photo: Metadata view of the file
        """
        start_time = datetime.now()
        name = Path(file_path).name

        try:
            stat = os.stat(file_path)
            with Image.open(file_path) as image:
                width, height = image.size
                exif = self.read_exif(image)

            make = self._clean_text(exif.get("Make"))
            model = self._clean_text(exif.get("Model"))

            photo = Photo(
                name=name,
                url=public_url,
                date_taken=self.resolve_date_taken(exif, stat),
                camera=f"{make} {model}".strip() if make else "",
                lens=self._clean_text(exif.get("LensModel")),
                width=width,
                height=height,
            )
        except Exception as e:
            log_error(e, {"operation": "extract_photo", "file": str(file_path)}, level="warning")
            return Photo.degraded(name, public_url)

        log_performance(
            "extract_photo",
            (datetime.now() - start_time).total_seconds(),
            file=name,
            width=photo.width,
            height=photo.height,
            has_exif=bool(exif),
        )
        return photo

    def generate_thumbnail(self, source: Path, destination: Path) -> bool:
        """
        Write a square, center-cropped JPEG thumbnail.

        Args:
            source: Original image
            destination: Thumbnail path; parent directories are created

        Returns:
            bool: True on success, False if anything failed (the failure is logged)
        """
        start_time = datetime.now()
        size = (self.thumbnail_size, self.thumbnail_size)

        try:
            Path(destination).parent.mkdir(parents=True, exist_ok=True)
            with Image.open(source) as image:
                image = ImageOps.exif_transpose(image)

                if image.mode not in ("RGB", "L"):
                    image = image.convert("RGB")

                thumbnail = ImageOps.fit(image, size, Image.Resampling.LANCZOS, centering=(0.5, 0.5))
                thumbnail.save(destination, format="JPEG", quality=self.thumbnail_quality, optimize=True)
        except Exception as e:
            log_error(
                e,
                {
                    "operation": "generate_thumbnail",
                    "source": str(source),
                    "destination": str(destination),
                },
                level="warning",
            )
            return False

        log_performance(
            "generate_thumbnail",
            (datetime.now() - start_time).total_seconds(),
            source=str(source),
            thumbnail_size=size,
            quality=self.thumbnail_quality,
        )
        logger.debug("thumbnail_generated", source=str(source), destination=str(destination))
        return True
