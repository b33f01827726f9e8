from sqlalchemy import (
    Column, Integer, String, Boolean, Float, ForeignKey, TIMESTAMP, ARRAY, JSON,
    UniqueConstraint, func,
)
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import relationship
from skillexchange.database import Base

# SQLite (used by tests) does not support ARRAY; store as JSON there.
StringList = MutableList.as_mutable(ARRAY(String).with_variant(JSON, "sqlite"))


# ---------------- USER (IDENTITY MIRROR) ----------------
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), nullable=False, default="student")
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, onupdate=func.now())

    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    taught_sessions = relationship("Session", foreign_keys="Session.teacher_id", back_populates="teacher")


# ---------------- FRIENDSHIP ----------------
class Friendship(Base):
    """One row per direction; a mutual friendship is two rows."""
    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendship_pair"),
    )


# ---------------- PROFILE / REPUTATION LEDGER ----------------
class Profile(Base):
    __tablename__ = "profiles"

    id: int = Column(Integer, primary_key=True)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    bio: str = Column(String(500))
    teach_skills = Column(StringList, default=list, nullable=False)
    learn_skills = Column(StringList, default=list, nullable=False)

    # ledger
    credits: float = Column(Float, default=0.0, nullable=False)
    total_learned_hours: float = Column(Float, default=0.0, nullable=False)
    skills_mastered: int = Column(Integer, default=0, nullable=False)
    badges = Column(StringList, default=list, nullable=False)

    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="profile")
