"""
Pytest configuration and fixtures for photojournal tests.
"""

import io
from collections.abc import Callable, Generator
from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from photojournal.api import create_app
from photojournal.config import AppConfig

# EXIF tag ids used by the fixtures
MAKE = 271
MODEL = 272
DATETIME = 306
DATETIME_ORIGINAL = 36867
LENS_MODEL = 42036

ADMIN_PASSWORD = "test-password"


def create_test_image(
    format_type: str = "JPEG",
    size: tuple[int, int] = (100, 100),
    mode: str = "RGB",
    exif_tags: dict[int, Any] | None = None,
) -> bytes:
    """Create a test image in memory, optionally carrying EXIF tags."""
    image = Image.new(mode, size, color="red")
    buffer = io.BytesIO()
    save_kwargs: dict[str, Any] = {}
    if exif_tags:
        exif = Image.Exif()
        for tag, value in exif_tags.items():
            exif[tag] = value
        save_kwargs["exif"] = exif.tobytes()
    image.save(buffer, format=format_type, **save_kwargs)
    return buffer.getvalue()


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    """Factory fixture returning encoded test images."""
    return create_test_image


@pytest.fixture
def write_image(image_bytes: Callable[..., bytes]) -> Callable[..., Path]:
    """Factory fixture writing a test image to a path and returning it."""

    def _write(path: Path, **kwargs: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(image_bytes(**kwargs))
        return path

    return _write


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Configuration rooted in a temporary directory with the layout created."""
    config = AppConfig(
        content_root=tmp_path,
        admin_password=ADMIN_PASSWORD,
        thumbnail_workers=1,
        rate_limit_enabled=False,
    )
    config.ensure_layout()
    return config


@pytest.fixture
def admin_auth() -> tuple[str, str]:
    """HTTP Basic credentials accepted by the test app."""
    return ("admin", ADMIN_PASSWORD)


@pytest.fixture
def make_client(app_config: AppConfig) -> Generator[Callable[..., TestClient], None, None]:
    """Factory fixture building a TestClient, with AppConfig overrides as keyword arguments."""
    clients: list[TestClient] = []

    def _make(**overrides: Any) -> TestClient:
        config = replace(app_config, **overrides)
        client = TestClient(create_app(config))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client: Callable[..., TestClient]) -> TestClient:
    """TestClient for the default test configuration."""
    return make_client()


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set up test environment variables."""
    monkeypatch.setenv("TESTING", "true")
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
