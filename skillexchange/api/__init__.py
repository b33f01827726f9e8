# skillexchange/api/__init__.py
# This file makes the api directory a Python package.

from . import admin
from . import feedback
from . import notification
from . import profile
from . import report
from . import session

__all__ = [
    "session",
    "feedback",
    "profile",
    "report",
    "notification",
    "admin",
]
