"""
routers/email_media.py — Media library for email images (staff)

Images are stored publicly in object storage under email-media/ so they
can be referenced from any email. Deleting an item removes the object too.
"""

import time

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from loguru import logger
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_staff
from ..models import EmailMedia, User
from ..utils.file_validation import validate_image
from ..utils.storage import StorageError, delete_object, sanitize_filename, upload_bytes

router = APIRouter(tags=["email-media"])


def _media_to_dict(m: EmailMedia) -> dict:
    return {
        "id": m.id,
        "file_name": m.file_name,
        "file_url": m.file_url,
        "file_key": m.file_key,
        "file_size": m.file_size,
        "mime_type": m.mime_type,
        "uploaded_by": m.uploaded_by,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }


@router.get("/api/email-media")
def list_media(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    rows = db.query(EmailMedia).order_by(EmailMedia.created_at.desc(), EmailMedia.id.desc()).all()
    return [_media_to_dict(m) for m in rows]


@router.post("/api/email-media", status_code=201)
def upload_media(
    file: UploadFile = File(...),
    user: User = Depends(require_staff),
    db: Session = Depends(get_db),
):
    content = file.file.read()
    check = validate_image(content, file.content_type, settings.max_media_size_mb * 1024 * 1024)
    if not check["valid"]:
        raise HTTPException(400, check["reason"])

    file_name = file.filename or "image"
    key = f"email-media/{int(time.time() * 1000)}-{sanitize_filename(file_name)}"
    stored = upload_bytes(key, content, check["detected_mime"], public=True)

    media = EmailMedia(
        file_name=file_name,
        file_url=stored["url"],
        file_key=key,
        file_size=len(content),
        mime_type=check["detected_mime"],
        uploaded_by=user.id,
    )
    db.add(media)
    db.commit()
    db.refresh(media)
    logger.info("Email media {} uploaded by {}", key, user.email)
    return _media_to_dict(media)


@router.delete("/api/email-media/{media_id}")
def delete_media(media_id: int, user: User = Depends(require_staff), db: Session = Depends(get_db)):
    media = db.get(EmailMedia, media_id)
    if not media:
        raise HTTPException(404, "Media not found")
    try:
        delete_object(media.file_key)
    except StorageError as e:
        logger.warning("Could not delete {} from storage: {}", media.file_key, e)
    db.delete(media)
    db.commit()
    return {"success": True}
