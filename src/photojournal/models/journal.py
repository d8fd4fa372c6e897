"""
Journal sidecar model.

Each journal directory holds an info.json with title, date, description and
the filename of its cover image.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

DEFAULT_COVER = "cover.jpg"
DEFAULT_TITLE = "Untitled"

KNOWN_FIELDS = ("title", "date", "description", "cover")


@dataclass
class JournalInfo:
    """Contents of a journal's info.json. Unknown keys are carried in extra."""

    title: str
    date: str
    description: str = ""
    cover: str | None = DEFAULT_COVER
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create_new(
        cls,
        title: str | None = None,
        journal_date: str | None = None,
        description: str | None = None,
    ) -> "JournalInfo":
        """
        Create info for a new journal, filling defaults for missing fields.

        Args:
            title: Journal title (defaults to "Untitled")
            journal_date: Date string (defaults to today, YYYY-MM-DD)
            description: Free text (defaults to empty)

        Returns:
            New JournalInfo with cover set to cover.jpg
        """
        return cls(
            title=title or DEFAULT_TITLE,
            date=journal_date or date.today().isoformat(),
            description=description or "",
            cover=DEFAULT_COVER,
        )

    @classmethod
    def from_dict(cls, data: Any) -> "JournalInfo":
        """
        Build from parsed info.json content.

        Raises:
            ValueError: If data is not a JSON object
        """
        if not isinstance(data, dict):
            raise ValueError("info.json must contain a JSON object")
        return cls(
            title=data.get("title", ""),
            date=data.get("date", ""),
            description=data.get("description", ""),
            cover=data.get("cover"),
            extra={key: value for key, value in data.items() if key not in KNOWN_FIELDS},
        )

    def merge(
        self,
        title: str | None = None,
        journal_date: str | None = None,
        description: str | None = None,
    ) -> "JournalInfo":
        """
        Overlay an update onto this info.

        title and date replace the stored value only when truthy. description
        replaces it whenever it is not None, so "" clears it.
        """
        return JournalInfo(
            title=title or self.title,
            date=journal_date or self.date,
            description=self.description if description is None else description,
            cover=self.cover,
            extra=dict(self.extra),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.extra,
            "title": self.title,
            "date": self.date,
            "description": self.description,
            "cover": self.cover,
        }

    def sort_key(self) -> datetime:
        """Parsed date for ordering; unparsable dates sort after every real one."""
        try:
            parsed = datetime.fromisoformat(self.date)
        except (TypeError, ValueError):
            return datetime.min
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(UTC).replace(tzinfo=None)
        return parsed
