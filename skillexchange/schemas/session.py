from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

# ======================
# SESSION REQUEST MODELS
# ======================

class SessionCreate(BaseModel):
    """learner_ids for group sessions; learner_id kept for older clients"""
    skill: str = Field(..., min_length=1, max_length=100)
    date: str  # YYYY-MM-DD
    time: str  # HH:MM, UTC
    learner_ids: Optional[List[int]] = None
    learner_id: Optional[int] = None
    duration: Optional[float] = None  # hours
    end_time: Optional[datetime] = None

# ======================
# SESSION RESPONSE MODELS
# ======================

class SessionCreated(BaseModel):
    id: int
    teacher_id: int
    skill: str
    date: str
    time: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: str
    meeting_room: str
    participant_ids: List[int] = []


class SessionView(BaseModel):
    """One session as seen by one user"""
    id: int
    teacher_id: int
    teacher_name: Optional[str] = None
    skill: str
    date: str
    time: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: str
    global_status: str
    type: Optional[str] = None  # teaching | learning
    counterpart_name: Optional[str] = None
    participant_ids: List[int] = []
    participant_names: List[Optional[str]] = []
    participant_count: int = 0
    cancelled_participants: List[int] = []
    completed_participants: List[int] = []
    meeting_link_activated: bool = False
    meeting_link_expired: bool = False
    feedback_given: bool = False
    skill_claimed: bool = False

    model_config = ConfigDict(from_attributes=True)


class SessionActionResponse(BaseModel):
    message: str
    session_id: int
    status: Optional[str] = None
    completed_participants: Optional[List[int]] = None


class MeetingDetails(BaseModel):
    session_id: int
    meeting_room: str
    teacher_name: Optional[str] = None
    participant_names: List[Optional[str]] = []
    participant_count: int
    skill: str
    date: str
    time: str
    status: str
    user_role: str  # teacher | learner | participant
    meeting_link_activated: bool
    meeting_link_expired: bool


class MasteryClaimResponse(BaseModel):
    message: str
    session_id: int
    skill: str
    skills_mastered: int
