"""
routers/files.py — Job file uploads, presigned URLs, downloads

Business Rules:
- job_id is a numeric job id or a draft key ("draft_<token>")
- Uploads to a real job need client/designer/staff access
- Storage failures surface as 502 via the StorageError handler in main.py

Called by: main.py (router mount)
Depends on: services/file_service, services/job_service
"""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_job_for_user, require_user
from ..models import User
from ..schemas.files import AssociateDraft, DraftUpload, PresignRequest, SaveMetadata
from ..services import file_service
from ..services.job_service import job_files

router = APIRouter(tags=["files"])


def _raise_on_error(result: dict) -> dict:
    if "error" in result:
        raise HTTPException(result.get("status", 400), result["error"])
    return result


@router.post("/api/files/upload", status_code=201)
def upload_file(
    file: UploadFile = File(...),
    job_id: str = Form(...),
    file_type: str = Form("input"),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    content = file.file.read()
    result = file_service.upload_job_file(
        db, user, job_id, file.filename or "upload", content, file.content_type, file_type
    )
    return _raise_on_error(result)


@router.post("/api/files/upload-draft", status_code=201)
def upload_draft(body: DraftUpload, user: User = Depends(require_user)):
    return _raise_on_error(
        file_service.upload_draft_file(user, body.file_name, body.file_data, body.mime_type)
    )


@router.post("/api/files/presigned-url")
def presigned_url(body: PresignRequest, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _raise_on_error(
        file_service.presign_upload(db, user, body.file_name, body.mime_type, body.job_id)
    )


@router.post("/api/files/save-metadata", status_code=201)
def save_metadata(body: SaveMetadata, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _raise_on_error(file_service.save_metadata(db, user, body.model_dump()))


@router.post("/api/files/associate-draft")
def associate_draft(body: AssociateDraft, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _raise_on_error(
        file_service.associate_draft_files(db, user, body.draft_job_id, body.real_job_id)
    )


@router.get("/api/files")
def list_files(
    job_id: int = Query(...),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    get_job_for_user(db, user, job_id)
    return job_files(db, job_id)


@router.get("/api/files/{file_id}/download")
def download_file(file_id: int, user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _raise_on_error(file_service.download_url(db, user, file_id))
