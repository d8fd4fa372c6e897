"""
Photo model for photojournal.

A Photo is a view synthesized from an image file on every read; it is never
persisted on its own.
"""

from dataclasses import dataclass
from datetime import UTC, datetime


def format_timestamp(value: datetime) -> str:
    """Serialize an aware datetime as ISO-8601 UTC with milliseconds and a Z suffix."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Photo:
    """
    Metadata for one image file in a collection directory.

    date_taken is always timezone-aware so that photos from EXIF and from
    filesystem timestamps sort together.
    """

    name: str
    url: str
    date_taken: datetime
    camera: str = ""
    lens: str = ""
    width: int = 0
    height: int = 0

    @classmethod
    def degraded(cls, name: str, url: str) -> "Photo":
        """
        Record returned when an image cannot be read at all.

        Args:
            name: On-disk filename
            url: Public URL of the file

        Returns:
            Photo with empty camera/lens, zero size and the current time
        """
        return cls(name=name, url=url, date_taken=datetime.now(UTC))

    def to_dict(self) -> dict:
        """
        Convert Photo to the JSON shape served by the API.

        Returns:
            Dictionary with camelCase keys
        """
        return {
            "name": self.name,
            "url": self.url,
            "dateTaken": format_timestamp(self.date_taken),
            "camera": self.camera,
            "lens": self.lens,
            "width": self.width,
            "height": self.height,
        }


def sort_newest_first(photos: list[Photo]) -> list[Photo]:
    """Return photos ordered by date_taken, newest first."""
    return sorted(photos, key=lambda photo: photo.date_taken, reverse=True)
