# skillexchange/models/__init__.py
# Import models in dependency order
from .user import User, Friendship, Profile
from .session import Session, SessionMark, SessionStatus, MarkKind
from .feedback import Feedback
from .notification import Notification
from .report import UserReport

__all__ = [
    "User",
    "Friendship",
    "Profile",
    "Session",
    "SessionMark",
    "SessionStatus",
    "MarkKind",
    "Feedback",
    "Notification",
    "UserReport",
]
