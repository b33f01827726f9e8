from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

# ======================
# PROFILE MODELS
# ======================

class ProfileUpdate(BaseModel):
    bio: Optional[str] = Field(None, min_length=20, max_length=500)
    teach_skills: Optional[List[str]] = None
    learn_skills: Optional[List[str]] = None


class ProfileResponse(BaseModel):
    user_id: int
    name: str
    email: EmailStr
    bio: Optional[str] = None
    teach_skills: List[str] = []
    learn_skills: List[str] = []
    credits: float = 0.0
    total_learned_hours: float = 0.0
    skills_mastered: int = 0
    badges: List[str] = []

# ======================
# PROGRESS MODELS
# ======================

class SkillProgress(BaseModel):
    skill: str
    hours: float
    progress: float  # percent, capped at 100


class ProgressResponse(BaseModel):
    user_id: int
    total_learned_hours: float
    sessions_taught: int
    sessions_learned: int
    credits: float
    badges: List[str] = []
    skills_mastered: int
    mastered_skills: List[str] = []
    in_progress: List[SkillProgress] = []


class BadgeTierResponse(BaseModel):
    level: int
    name: str
    sessions_required: int
    credits_required: int
