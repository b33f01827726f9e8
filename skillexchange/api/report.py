import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skillexchange import models
from skillexchange.crud import report as report_crud
from skillexchange.crud import user as user_crud
from skillexchange.database import get_db
from skillexchange.utils.security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["Reports"])


class ReportCreateRequest(BaseModel):
    reported_user_id: int
    reason: str
    description: Optional[str] = None


@router.post("/", status_code=201)
def create_user_report(
    payload: ReportCreateRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    reported_user_id = int(payload.reported_user_id)
    reason = (payload.reason or "").strip()

    if reported_user_id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot report yourself")
    if len(reason) < 10:
        raise HTTPException(status_code=400, detail="Reason must be at least 10 characters")
    if len(reason) > 500:
        raise HTTPException(status_code=400, detail="Reason must be 500 characters or less")

    if not user_crud.get_user(db, reported_user_id):
        raise HTTPException(status_code=404, detail="User not found")

    report = report_crud.create_report(
        db,
        reporter_id=current_user.id,
        reported_user_id=reported_user_id,
        reason=reason,
        description=payload.description,
    )
    db.commit()
    db.refresh(report)
    logger.warning(
        "User reported (report_id=%s, reporter_id=%s, reported_user_id=%s)",
        report.id, current_user.id, reported_user_id,
    )

    return {
        "message": "Report submitted successfully",
        "report_id": report.id,
        "status": report.status,
    }
