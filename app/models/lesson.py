"""
Lesson Model

Individual lesson within a course.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, generate_id, utcnow

if TYPE_CHECKING:
    from app.models.course import Course


class Lesson(Base):
    """
    Lesson model.

    Ordering inside a course comes from order_index, which the caller
    supplies; it is not unique at the storage level.

    Attributes:
        id: String primary key.
        course_id: Foreign key to courses table.
        title: Lesson title.
        description: Optional description.
        video_url: Optional video URL.
        duration: Duration in seconds (nullable).
        materials: Optional list of attached materials.
        order_index: Position of the lesson in its course.
        is_free: Free preview, accessible without a paid enrollment.
    """

    __tablename__ = "lessons"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_id,
    )
    course_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("courses.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    video_url: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
    )
    duration: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
    )
    materials: Mapped[Optional[List[Any]]] = mapped_column(
        JSON,
        nullable=True,
    )
    order_index: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    is_free: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
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
    course: Mapped["Course"] = relationship(
        "Course",
        back_populates="lessons",
    )

    def __repr__(self) -> str:
        return f"<Lesson(id={self.id}, course_id={self.course_id}, order={self.order_index})>"
