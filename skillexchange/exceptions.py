"""
Domain errors raised by the service layer.

Services never raise HTTPException; main.py maps these onto responses
using ``status_code`` and ``error_code``.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class SkillExchangeError(Exception):
    """Base class for all domain errors."""

    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class ValidationError(SkillExchangeError):
    """Malformed or missing input."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class NotFoundError(SkillExchangeError):
    """Unknown session, user or feedback."""

    status_code = 404
    error_code = "NOT_FOUND"


class ForbiddenError(SkillExchangeError):
    """Actor lacks a role in the resource, or the meeting link is not usable."""

    status_code = 403
    error_code = "FORBIDDEN"


class ConflictError(SkillExchangeError):
    """Wrong lifecycle state, duplicate submission or fairness violation."""

    status_code = 409
    error_code = "CONFLICT"


class SessionNotStartedError(ConflictError):
    """Join attempted before the scheduled start; the caller may retry later."""

    error_code = "SESSION_NOT_STARTED"

    def __init__(self, starts_at: datetime, message: Optional[str] = None):
        super().__init__(
            message or f"Session starts at {starts_at.isoformat()}; the link will be active then.",
            extra={"starts_at": starts_at.isoformat()},
        )
        self.starts_at = starts_at
