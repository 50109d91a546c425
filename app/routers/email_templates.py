"""
routers/email_templates.py — Email template CRUD, test sends, inline images

Business Rules:
- Template management is admin only; template names are unique (409)
- Test sends prefix the subject with "[TEST] " and 500 when delivery fails
- Inline images are stored in the database (base64) and served publicly
  with a one-year immutable cache header so mail clients can fetch them

Called by: main.py (router mount)
Depends on: services/email_service, utils/file_validation, models.EmailTemplate
"""

import base64
import binascii

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import require_admin
from ..models import EmailTemplate, EmailTemplateImage, User
from ..schemas.email import SendTestEmail, TemplateCreate, TemplateUpdate
from ..services.email_service import send_test_email
from ..utils.file_validation import validate_image

router = APIRouter(tags=["email-templates"])

IMAGE_CACHE_CONTROL = "public, max-age=31536000, immutable"


def _template_to_dict(t: EmailTemplate) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "subject": t.subject,
        "body": t.body,
        "trigger_event": t.trigger_event,
        "department_id": t.department_id,
        "recipient_type": t.recipient_type,
        "is_active": t.is_active,
        "created_at": t.created_at.isoformat() if t.created_at else None,
        "updated_at": t.updated_at.isoformat() if t.updated_at else None,
    }


def _name_taken(db: Session, name: str, exclude_id: int | None = None) -> bool:
    q = db.query(EmailTemplate).filter(EmailTemplate.name == name)
    if exclude_id is not None:
        q = q.filter(EmailTemplate.id != exclude_id)
    return q.first() is not None


# ── Templates ────────────────────────────────────────────────────────


@router.get("/api/email-templates")
def list_templates(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return [_template_to_dict(t) for t in db.query(EmailTemplate).order_by(EmailTemplate.name).all()]


@router.post("/api/email-templates", status_code=201)
def create_template(body: TemplateCreate, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    if _name_taken(db, body.name):
        raise HTTPException(409, "A template with this name already exists")
    template = EmailTemplate(**body.model_dump())
    db.add(template)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, "A template with this name already exists")
    db.refresh(template)
    logger.info("Email template '{}' created by {}", template.name, user.email)
    return _template_to_dict(template)


@router.post("/api/email-templates/send-test")
async def send_test(body: SendTestEmail, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    if not body.subject.strip() or not body.body.strip():
        raise HTTPException(400, "Subject and body are required")
    result = await send_test_email(db, body.to, body.subject, body.body)
    if not result["success"]:
        raise HTTPException(500, f"Failed to send test email: {result['error']}")
    return {"success": True, "status": result["status"], "message_id": result["message_id"]}


@router.post("/api/email-templates/upload-image", status_code=201)
def upload_image(
    file: UploadFile = File(...),
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    content = file.file.read()
    check = validate_image(content, file.content_type, settings.max_media_size_mb * 1024 * 1024)
    if not check["valid"]:
        raise HTTPException(400, check["reason"])

    image = EmailTemplateImage(
        filename=file.filename or "image",
        content_type=check["detected_mime"],
        base64_data=base64.b64encode(content).decode("ascii"),
        size=len(content),
    )
    db.add(image)
    db.commit()
    db.refresh(image)
    return {
        "id": image.id,
        "url": f"{settings.app_url}/api/email-templates/images/{image.id}",
        "filename": image.filename,
        "size": image.size,
    }


@router.get("/api/email-templates/images/{image_id}")
def get_image(image_id: int, db: Session = Depends(get_db)):
    """Public: mail clients fetch these without credentials."""
    image = db.get(EmailTemplateImage, image_id)
    if not image:
        raise HTTPException(404, "Image not found")
    try:
        data = base64.b64decode(image.base64_data)
    except (binascii.Error, ValueError):
        logger.error("Stored image {} is not valid base64", image_id)
        raise HTTPException(500, "Stored image is corrupt")
    return Response(
        content=data,
        media_type=image.content_type,
        headers={"Cache-Control": IMAGE_CACHE_CONTROL},
    )


@router.get("/api/email-templates/{template_id}")
def get_template(template_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    template = db.get(EmailTemplate, template_id)
    if not template:
        raise HTTPException(404, "Template not found")
    return _template_to_dict(template)


@router.patch("/api/email-templates/{template_id}")
def update_template(
    template_id: int,
    body: TemplateUpdate,
    user: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    template = db.get(EmailTemplate, template_id)
    if not template:
        raise HTTPException(404, "Template not found")
    updates = body.model_dump(exclude_unset=True)
    if updates.get("name") and _name_taken(db, updates["name"], exclude_id=template_id):
        raise HTTPException(409, "A template with this name already exists")
    for key, value in updates.items():
        if key in ("name", "subject", "body") and not (value or "").strip():
            raise HTTPException(400, f"{key.capitalize()} cannot be empty")
        setattr(template, key, value)
    db.commit()
    db.refresh(template)
    return _template_to_dict(template)


@router.delete("/api/email-templates/{template_id}")
def delete_template(template_id: int, user: User = Depends(require_admin), db: Session = Depends(get_db)):
    template = db.get(EmailTemplate, template_id)
    if not template:
        raise HTTPException(404, "Template not found")
    db.delete(template)
    db.commit()
    logger.info("Email template '{}' deleted by {}", template.name, user.email)
    return {"success": True}
