"""
Health check functionality for photojournal.

Liveness only reports that the process answers. Readiness checks the content
directories and the configuration a deployment depends on.
"""

import os
import platform
import time
from datetime import UTC, datetime
from typing import Any

from . import __version__
from .config import DEFAULT_ADMIN_PASSWORD, AppConfig
from .logging_config import get_logger
from .models.photo import format_timestamp

logger = get_logger(__name__)

_started_at = time.time()


def check_storage_health(config: AppConfig) -> dict[str, Any]:
    """Check that every content directory exists and is writable."""
    missing = []
    read_only = []

    for directory in config.content_dirs():
        if not directory.is_dir():
            missing.append(str(directory))
        elif not os.access(directory, os.W_OK):
            read_only.append(str(directory))

    if missing or read_only:
        logger.error("storage_health_check_failed", missing=missing, read_only=read_only)
        return {
            "status": "unhealthy",
            "message": "Content directories unavailable",
            "timestamp": time.time(),
            "missing": missing,
            "read_only": read_only,
        }

    return {
        "status": "healthy",
        "message": "Content directories available",
        "timestamp": time.time(),
        "content_root": str(config.content_root),
    }


def check_environment_health(config: AppConfig) -> dict[str, Any]:
    """A production deployment must not run with the default admin password."""
    if config.production and config.admin_password == DEFAULT_ADMIN_PASSWORD:
        return {
            "status": "unhealthy",
            "message": "ADMIN_PASSWORD is not set for production",
            "timestamp": time.time(),
        }

    return {
        "status": "healthy",
        "message": "Environment configuration is valid",
        "timestamp": time.time(),
        "environment": "production" if config.production else "development",
    }


def get_application_info() -> dict[str, Any]:
    """Get application information."""
    return {
        "name": "photojournal",
        "version": __version__,
        "uptime": time.time() - _started_at,
        "python_version": platform.python_version(),
        "platform": os.name,
    }


def check_liveness() -> dict[str, Any]:
    """Liveness probe payload."""
    return {"status": "ok", "timestamp": format_timestamp(datetime.now(UTC))}


def check_readiness(config: AppConfig) -> dict[str, Any]:
    """Readiness probe: storage and configuration checks."""
    checks = {
        "storage": check_storage_health(config),
        "environment": check_environment_health(config),
    }
    is_ready = all(check["status"] == "healthy" for check in checks.values())

    logger.debug("readiness_checked", ready=is_ready)
    return {
        "status": "ready" if is_ready else "not_ready",
        "timestamp": time.time(),
        "application": get_application_info(),
        "checks": checks,
    }
