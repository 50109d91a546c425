"""Job messages — list (internal hidden from clients) and post."""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import get_job_for_user, require_user
from ..models import User
from ..services.job_service import list_messages, post_message

router = APIRouter(tags=["messages"])


class MessagePost(BaseModel):
    job_id: int
    content: str = ""
    is_internal: bool = False


@router.get("/api/messages")
def get_messages(
    job_id: int = Query(...),
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    get_job_for_user(db, user, job_id)
    return list_messages(db, job_id, user)


@router.post("/api/messages", status_code=201)
def create_message(body: MessagePost, user: User = Depends(require_user), db: Session = Depends(get_db)):
    job = get_job_for_user(db, user, body.job_id)
    result = post_message(db, job, user, body.content, body.is_internal)
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result
