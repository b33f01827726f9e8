from datetime import datetime, UTC
from typing import Optional

from sqlalchemy.orm import Session

from skillexchange.models.report import INACTIVE_REPORT_STATUSES, UserReport


def has_active_report(db: Session, user_a: int, user_b: int) -> bool:
    """True when either user has an unresolved report against the other."""
    report = db.query(UserReport.id).filter(
        ((UserReport.reporter_id == user_a) & (UserReport.reported_user_id == user_b))
        | ((UserReport.reporter_id == user_b) & (UserReport.reported_user_id == user_a)),
        UserReport.status.notin_(INACTIVE_REPORT_STATUSES),
    ).first()
    return report is not None


def create_report(
    db: Session,
    *,
    reporter_id: int,
    reported_user_id: int,
    reason: str,
    description: Optional[str] = None,
) -> UserReport:
    report = UserReport(
        reporter_id=reporter_id,
        reported_user_id=reported_user_id,
        reason=reason,
        description=description,
        status="pending",
    )
    db.add(report)
    db.flush()
    return report


def get_report(db: Session, report_id: int) -> Optional[UserReport]:
    return db.query(UserReport).filter(UserReport.id == report_id).first()


def set_report_status(db: Session, report: UserReport, status: str, admin_notes: Optional[str] = None) -> UserReport:
    report.status = status
    if admin_notes is not None:
        report.admin_notes = admin_notes
    if status in ("actioned", "dismissed"):
        report.resolved_at = datetime.now(UTC).replace(tzinfo=None)
    db.flush()
    return report
