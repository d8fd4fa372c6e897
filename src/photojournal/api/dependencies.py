"""Accessors for the components created once in create_app()."""

from dataclasses import dataclass

from fastapi import Request

from ..config import AppConfig
from ..services.storage import AboutRepository, JournalRepository, MomentsRepository
from ..services.thumbnails import ThumbnailQueue
from ..services.uploads import UploadService


@dataclass
class Services:
    """Everything a route handler may use, built from one AppConfig."""

    config: AppConfig
    moments: MomentsRepository
    journals: JournalRepository
    about: AboutRepository
    thumbnails: ThumbnailQueue
    uploads: UploadService


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_moments(request: Request) -> MomentsRepository:
    return get_services(request).moments


def get_journals(request: Request) -> JournalRepository:
    return get_services(request).journals


def get_about(request: Request) -> AboutRepository:
    return get_services(request).about


def get_uploads(request: Request) -> UploadService:
    return get_services(request).uploads
