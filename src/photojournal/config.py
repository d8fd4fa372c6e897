"""Configuration management for photojournal.

Values come from environment variables (a .env file is loaded by the entry
point). Config does the lookup and casting; AppConfig is the immutable
settings struct built once at startup and handed to every component.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_ADMIN_PASSWORD = "admin123"
ADMIN_USERNAME = "admin"


class Config:
    """Environment variable lookup with type casting and caching."""

    def __init__(self, environ: dict[str, str] | None = None):
        """Initialize configuration.

        Args:
            environ: Mapping to read from (defaults to os.environ)
        """
        self._environ = environ
        self._cache: dict[str, Any] = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from the environment.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        source = self._environ if self._environ is not None else os.environ
        value = source.get(key)

        if value is None:
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.lower() in ("true", "1", "yes", "on")
                    else:
                        value = bool(value)
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning("config_cast_failed", key=key, cast_type=cast_type.__name__, error=str(e))
                value = default

        self._cache[cache_key] = value
        return value

    def is_production(self) -> bool:
        """Check if running in production mode."""
        environment = self.get("ENVIRONMENT", "development").lower()
        return environment in ["production", "prod"]

    def clear_cache(self):
        """Clear configuration cache."""
        self._cache.clear()


@dataclass(frozen=True)
class AppConfig:
    """Settings shared by the repositories, upload pipeline and HTTP layer."""

    content_root: Path
    port: int = 3000
    host: str = "0.0.0.0"  # nosec B104
    admin_password: str = DEFAULT_ADMIN_PASSWORD
    production: bool = False
    log_level: str = "INFO"
    max_file_size: int = 20 * 1024 * 1024
    max_files: int = 50
    allowed_mime_types: tuple[str, ...] = ("image/jpeg", "image/png", "image/webp")
    thumbnail_size: int = 400
    thumbnail_quality: int = 80
    thumbnail_workers: int = 2
    rate_limit_enabled: bool = True
    api_rate_limit: tuple[int, int] = (100, 15 * 60)
    upload_rate_limit: tuple[int, int] = (200, 60 * 60)
    image_extensions: frozenset[str] = field(default_factory=lambda: frozenset({".jpg", ".jpeg", ".png", ".webp"}))

    @classmethod
    def from_env(cls, config: Config | None = None) -> "AppConfig":
        """Build settings from environment variables."""
        config = config or Config()

        admin_password = config.get("ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)
        production = config.is_production()
        if admin_password == DEFAULT_ADMIN_PASSWORD:
            logger.warning("default_admin_password_in_use", production=production)

        return cls(
            content_root=Path(config.get("CONTENT_ROOT", os.getcwd())).resolve(),
            port=config.get("PORT", 3000, int),
            host=config.get("HOST", "0.0.0.0"),  # nosec B104
            admin_password=admin_password,
            production=production,
            log_level=config.get("LOG_LEVEL", "INFO"),
            max_file_size=config.get("MAX_FILE_SIZE", 20 * 1024 * 1024, int),
            max_files=config.get("MAX_FILES", 50, int),
            thumbnail_size=config.get("THUMBNAIL_SIZE", 400, int),
            thumbnail_quality=config.get("THUMBNAIL_QUALITY", 80, int),
            thumbnail_workers=config.get("THUMBNAIL_WORKERS", 2, int),
            rate_limit_enabled=config.get("RATE_LIMIT_ENABLED", True, bool),
        )

    # Directory layout under content_root

    @property
    def moments_images_dir(self) -> Path:
        return self.content_root / "moments" / "images"

    @property
    def moments_thumbnails_dir(self) -> Path:
        return self.content_root / "moments" / "thumbnails"

    @property
    def journals_dir(self) -> Path:
        return self.content_root / "journals"

    @property
    def public_dir(self) -> Path:
        return self.content_root / "public"

    @property
    def assets_dir(self) -> Path:
        return self.public_dir / "assets"

    @property
    def data_dir(self) -> Path:
        return self.content_root / "data"

    @property
    def about_path(self) -> Path:
        return self.data_dir / "about.json"

    @property
    def profile_image_path(self) -> Path:
        return self.assets_dir / "profile.jpg"

    @property
    def max_file_size_mb(self) -> int:
        return self.max_file_size // (1024 * 1024)

    @property
    def static_max_age(self) -> int:
        """Cache lifetime for static files: one year in production, none in development."""
        return 365 * 24 * 60 * 60 if self.production else 0

    def content_dirs(self) -> list[Path]:
        return [
            self.moments_images_dir,
            self.moments_thumbnails_dir,
            self.journals_dir,
            self.assets_dir,
            self.data_dir,
        ]

    def ensure_layout(self) -> None:
        """Create every content directory that does not exist yet."""
        for directory in self.content_dirs():
            directory.mkdir(parents=True, exist_ok=True)
        logger.debug("content_layout_ready", content_root=str(self.content_root))
