"""
Enrollment Model

User-course enrollment with payment state and completion tracking.
"""

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, generate_id, utcnow
from app.models.enums import PaymentStatus

if TYPE_CHECKING:
    from app.models.course import Course
    from app.models.user import User


class Enrollment(Base):
    """
    Enrollment model representing a user taking a course.

    The unique constraint on (user_id, course_id) is what makes concurrent
    enrollment and webhook reconciliation safe: inserts go through
    ``ON CONFLICT DO NOTHING`` and the loser falls back to an update.

    Attributes:
        id: String primary key.
        user_id: Foreign key to users table.
        course_id: Foreign key to courses table.
        payment_status: pending, free, paid, failed or refunded.
        payment_id: Provider invoice id, once known.
        progress: Completion percentage (0-100).
        completed_lessons: Ids of completed lessons, in lesson order.
        enrolled_at: Creation timestamp.
        updated_at: Last payment or progress change.
    """

    __tablename__ = "enrollments"

    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_enrollment_user_course"),
    )

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_id,
    )
    user_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    course_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
    )
    payment_status: Mapped[str] = mapped_column(
        String(20),
        default=PaymentStatus.PENDING.value,
        nullable=False,
    )
    payment_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    progress: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    completed_lessons: Mapped[List[str]] = mapped_column(
        JSON,
        default=list,
        nullable=False,
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="enrollments",
    )
    course: Mapped["Course"] = relationship(
        "Course",
        lazy="selectin",
    )

    @property
    def has_access(self) -> bool:
        """Whether the enrollment unlocks non-preview lessons."""
        return self.payment_status in (PaymentStatus.FREE.value, PaymentStatus.PAID.value)

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, user_id={self.user_id}, "
            f"course_id={self.course_id}, status={self.payment_status})>"
        )
