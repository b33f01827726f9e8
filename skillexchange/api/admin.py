# skillexchange/api/admin.py
"""
Admin API
Read and maintenance endpoints for operators listed in ADMIN_EMAILS.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from skillexchange.crud import report as report_crud
from skillexchange.database import get_db
from skillexchange.models.report import REPORT_STATUSES
from skillexchange.models.user import User
from skillexchange.services import session_service
from skillexchange.utils.security import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


class ReportStatusUpdate(BaseModel):
    status: str
    admin_notes: Optional[str] = None


# ─────────────────────────────────────────
# GET /admin/sessions: All sessions
# ─────────────────────────────────────────
@router.get("/sessions")
def get_all_sessions(
    status: Optional[str] = Query(None, description="Filter by global status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return session_service.list_all_sessions(db, status=status, limit=limit, offset=skip)


# ─────────────────────────────────────────
# POST /admin/sessions/expire: Run the expiry sweep
# ─────────────────────────────────────────
@router.post("/sessions/expire")
def expire_sessions(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    count = session_service.expire_stale_sessions(db)
    return {"message": "Expiry sweep finished", "expired": count}


# ─────────────────────────────────────────
# POST /admin/sessions/backfill-participants
# ─────────────────────────────────────────
@router.post("/sessions/backfill-participants")
def backfill_participants(
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    count = session_service.backfill_legacy_participants(db)
    return {"message": "Legacy sessions migrated", "updated": count}


# ─────────────────────────────────────────
# PATCH /admin/reports/{report_id}: Resolve a report
# ─────────────────────────────────────────
@router.patch("/reports/{report_id}")
def update_report_status(
    report_id: int,
    payload: ReportStatusUpdate,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db)
):
    new_status = (payload.status or "").strip().lower()
    if new_status not in REPORT_STATUSES:
        raise HTTPException(
            status_code=400,
            detail=f"status must be one of: {', '.join(REPORT_STATUSES)}",
        )

    report = report_crud.get_report(db, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    report_crud.set_report_status(db, report, new_status, payload.admin_notes)
    db.commit()
    logger.info("Report %s set to %s by admin_id=%s", report.id, new_status, admin.id)

    return {
        "id": report.id,
        "status": report.status,
        "admin_notes": report.admin_notes,
        "resolved_at": report.resolved_at.isoformat() if report.resolved_at else None,
    }
