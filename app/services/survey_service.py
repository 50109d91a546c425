"""Client satisfaction surveys and their analytics."""

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ..models import Job, Survey, User

log = logging.getLogger(__name__)

RATING_FIELDS = ("overall_satisfaction", "communication_rating", "quality_rating", "timeliness_rating")


def serialize_survey(s: Survey) -> dict:
    out = {
        "id": s.id,
        "job_id": s.job_id,
        "client_id": s.client_id,
        "feedback": s.feedback,
        "would_recommend": s.would_recommend,
        "completed_at": s.completed_at.isoformat() if s.completed_at else None,
    }
    for field in RATING_FIELDS:
        out[field] = getattr(s, field)
    return out


def submit_survey(db: Session, user: User, data: dict) -> dict:
    job = db.get(Job, data.get("job_id"))
    if not job:
        return {"error": "Job not found", "status": 404}
    if job.client_id != user.id:
        return {"error": "Only the job's client can submit a survey", "status": 403}
    if db.query(Survey).filter(Survey.job_id == job.id).first():
        return {"error": "A survey has already been submitted for this job", "status": 409}

    survey = Survey(
        job_id=job.id,
        client_id=user.id,
        feedback=data.get("feedback"),
        would_recommend=data.get("would_recommend"),
        completed_at=datetime.now(timezone.utc),
        **{f: data.get(f) for f in RATING_FIELDS},
    )
    db.add(survey)
    db.commit()
    db.refresh(survey)
    log.info(f"Survey submitted for job {job.id} by {user.email}")
    return serialize_survey(survey)


def list_surveys(db: Session) -> list[dict]:
    rows = db.query(Survey).order_by(Survey.completed_at.desc(), Survey.id.desc()).all()
    results = []
    for s in rows:
        item = serialize_survey(s)
        job = db.get(Job, s.job_id) if s.job_id else None
        item["job_title"] = job.title if job else None
        results.append(item)
    return results


def _average(values: list[int]) -> float | None:
    if not values:
        return None
    return round(sum(values) / len(values), 2)


def survey_analytics(db: Session) -> dict:
    rows = db.query(Survey).all()
    averages = {
        field: _average([getattr(s, field) for s in rows if getattr(s, field) is not None])
        for field in RATING_FIELDS
    }
    answered = [s.would_recommend for s in rows if s.would_recommend is not None]
    rate = round(100 * sum(1 for a in answered if a) / len(answered), 2) if answered else None
    return {"total": len(rows), "averages": averages, "recommendation_rate": rate}
