"""
Course Model

Priced course owned by a single instructor.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, generate_id, utcnow

if TYPE_CHECKING:
    from app.models.category import Category
    from app.models.lesson import Lesson
    from app.models.user import User


class Course(Base):
    """
    Course model.

    Attributes:
        id: String primary key.
        title: Course title.
        slug: Unique URL slug derived from the title.
        description: Course description.
        thumbnail: Optional thumbnail URL.
        price: Price in the smallest currency unit; 0 means free.
        category_id: Optional foreign key to categories.
        instructor_id: Owning instructor; only they may mutate the course.
        is_published: Whether the course is publicly visible.
    """

    __tablename__ = "courses"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        default=generate_id,
    )
    title: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )
    slug: Mapped[str] = mapped_column(
        String(500),
        unique=True,
        index=True,
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    thumbnail: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
    )
    price: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )
    category_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
    )
    instructor_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    is_published: Mapped[bool] = mapped_column(
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
    category: Mapped[Optional["Category"]] = relationship(
        "Category",
        lazy="selectin",
    )
    instructor: Mapped["User"] = relationship(
        "User",
        foreign_keys=[instructor_id],
        lazy="selectin",
    )
    lessons: Mapped[list["Lesson"]] = relationship(
        "Lesson",
        back_populates="course",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="Lesson.order_index",
    )

    @property
    def is_free(self) -> bool:
        return self.price == 0

    @property
    def category_name(self) -> Optional[str]:
        return self.category.name if self.category else None

    @property
    def instructor_profile(self):
        return self.instructor.instructor_profile if self.instructor else None

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, title={self.title[:30]}...)>"
