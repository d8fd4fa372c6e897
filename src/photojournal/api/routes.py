"""
JSON API routes.

Handlers are plain functions, so FastAPI runs them on its thread pool and
filesystem or Pillow work only holds up the request that asked for it.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, File, Query, UploadFile
from pydantic import BaseModel

from ..health import check_liveness, check_readiness
from ..logging_config import log_user_action
from ..services.storage import AboutRepository, JournalRepository, MomentsRepository
from ..services.uploads import IncomingFile, UploadService
from .auth import require_admin
from .dependencies import Services, get_about, get_journals, get_moments, get_services, get_uploads
from .rate_limit import api_rate_limit, upload_rate_limit

router = APIRouter(prefix="/api")


class JournalCreate(BaseModel):
    id: str
    title: str | None = None
    date: str | None = None
    description: str | None = None


class JournalUpdate(BaseModel):
    title: str | None = None
    date: str | None = None
    description: str | None = None


def to_incoming(uploads: list[UploadFile] | None) -> list[IncomingFile]:
    return [
        IncomingFile(filename=upload.filename, content_type=upload.content_type, stream=upload.file, size=upload.size)
        for upload in uploads or []
    ]


# Public


@router.get("/health")
def health() -> dict[str, Any]:
    return check_liveness()


@router.get("/health/ready")
def readiness(services: Services = Depends(get_services)) -> dict[str, Any]:
    return check_readiness(services.config)


@router.get("/about")
def get_about_record(about: AboutRepository = Depends(get_about)) -> dict[str, Any]:
    return about.get()


@router.get("/photos", dependencies=[Depends(api_rate_limit)])
def list_photos(moments: MomentsRepository = Depends(get_moments)) -> list[dict[str, Any]]:
    return [photo.to_dict() for photo in moments.list_photos()]


@router.get("/journals", dependencies=[Depends(api_rate_limit)])
def list_journals(journals: JournalRepository = Depends(get_journals)) -> list[dict[str, Any]]:
    return journals.list_journals()


@router.get("/journals/{journal_id}", dependencies=[Depends(api_rate_limit)])
def get_journal(journal_id: str, journals: JournalRepository = Depends(get_journals)) -> dict[str, Any]:
    return journals.get_journal(journal_id)


# Management


@router.put("/about")
def replace_about(
    record: dict[str, Any] = Body(...),
    about: AboutRepository = Depends(get_about),
    user: str = Depends(require_admin),
) -> dict[str, Any]:
    about.replace(record)
    log_user_action(user, "replace_about")
    return {"success": True}


@router.post("/about/photo", dependencies=[Depends(require_admin), Depends(upload_rate_limit)])
def upload_profile_photo(
    user: str = Depends(require_admin),
    photo: UploadFile | None = File(None),
    uploads: UploadService = Depends(get_uploads),
) -> dict[str, Any]:
    incoming = to_incoming([photo] if photo else None)
    url = uploads.upload_profile_photo(incoming[0] if incoming else None)
    log_user_action(user, "upload_profile_photo")
    return {"success": True, "url": url}


@router.post("/photos", dependencies=[Depends(require_admin), Depends(upload_rate_limit)])
def upload_moments(
    user: str = Depends(require_admin),
    photos: list[UploadFile] | None = File(None),
    uploads: UploadService = Depends(get_uploads),
) -> dict[str, Any]:
    names = uploads.upload_moments(to_incoming(photos))
    log_user_action(user, "upload_moments", count=len(names))
    return {"success": True, "count": len(names), "files": names}


@router.delete("/photos/{filename}")
def delete_moments_photo(
    filename: str,
    moments: MomentsRepository = Depends(get_moments),
    user: str = Depends(require_admin),
) -> dict[str, Any]:
    removed = moments.delete_photo(filename)
    log_user_action(user, "delete_moments_photo", filename=removed)
    return {"success": True}


@router.post("/journals")
def create_journal(
    body: JournalCreate,
    journals: JournalRepository = Depends(get_journals),
    user: str = Depends(require_admin),
) -> dict[str, Any]:
    journal_id = journals.create_journal(body.id, body.title, body.date, body.description)
    log_user_action(user, "create_journal", journal_id=journal_id)
    return {"success": True, "id": journal_id}


@router.put("/journals/{journal_id}")
def update_journal(
    journal_id: str,
    body: JournalUpdate,
    journals: JournalRepository = Depends(get_journals),
    user: str = Depends(require_admin),
) -> dict[str, Any]:
    journals.update_journal(journal_id, body.title, body.date, body.description)
    log_user_action(user, "update_journal", journal_id=journal_id)
    return {"success": True}


@router.delete("/journals/{journal_id}")
def delete_journal(
    journal_id: str,
    journals: JournalRepository = Depends(get_journals),
    user: str = Depends(require_admin),
) -> dict[str, Any]:
    removed = journals.delete_journal(journal_id)
    log_user_action(user, "delete_journal", journal_id=removed)
    return {"success": True}


@router.post("/journals/{journal_id}/photos", dependencies=[Depends(require_admin), Depends(upload_rate_limit)])
def upload_journal_photos(
    journal_id: str,
    user: str = Depends(require_admin),
    photos: list[UploadFile] | None = File(None),
    upload_type: str | None = Query(None, alias="type"),
    uploads: UploadService = Depends(get_uploads),
) -> dict[str, Any]:
    names = uploads.upload_journal_photos(journal_id, to_incoming(photos), cover=upload_type == "cover")
    log_user_action(user, "upload_journal_photos", journal_id=journal_id, count=len(names))
    return {"success": True, "count": len(names)}


@router.delete("/journals/{journal_id}/photos/{filename}")
def delete_journal_photo(
    journal_id: str,
    filename: str,
    journals: JournalRepository = Depends(get_journals),
    user: str = Depends(require_admin),
) -> dict[str, Any]:
    removed = journals.delete_photo(journal_id, filename)
    log_user_action(user, "delete_journal_photo", journal_id=journal_id, filename=removed)
    return {"success": True}
