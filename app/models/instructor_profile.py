"""
Instructor Profile Model

Extended profile for users who teach courses.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, generate_id, utcnow

if TYPE_CHECKING:
    from app.models.user import User


class InstructorProfile(Base):
    """
    Instructor profile, one-to-one with User.

    Read-only from the point of view of enrollment and progress; it is
    joined into course and enrollment listings.

    Attributes:
        id: String primary key.
        user_id: Foreign key to users table.
        bio: Instructor biography.
        expertise: List of expertise areas.
        avatar: Avatar URL.
        is_verified: Whether the marketplace verified the instructor.
        total_students: Denormalized student count.
        total_courses: Denormalized course count.
    """

    __tablename__ = "instructor_profiles"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_id,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    bio: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    expertise: Mapped[Optional[List[str]]] = mapped_column(
        JSON,
        nullable=True,
    )
    avatar: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    total_students: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    total_courses: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="instructor_profile",
    )

    def __repr__(self) -> str:
        return f"<InstructorProfile(id={self.id}, user_id={self.user_id})>"
