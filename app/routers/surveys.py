"""Client satisfaction surveys — submit (job client), list and analytics (staff)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_staff, require_user
from ..models import User
from ..schemas.surveys import SurveySubmit
from ..services import survey_service

router = APIRouter(tags=["surveys"])


@router.post("/api/surveys", status_code=201)
def submit_survey(body: SurveySubmit, user: User = Depends(require_user), db: Session = Depends(get_db)):
    result = survey_service.submit_survey(db, user, body.model_dump())
    if "error" in result:
        raise HTTPException(result["status"], result["error"])
    return result


@router.get("/api/surveys")
def list_surveys(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return survey_service.list_surveys(db)


@router.get("/api/surveys/analytics")
def survey_analytics(user: User = Depends(require_staff), db: Session = Depends(get_db)):
    return survey_service.survey_analytics(db)
