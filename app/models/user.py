"""
User Model

Local mirror of identities issued by the external identity provider.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, utcnow

if TYPE_CHECKING:
    from app.models.instructor_profile import InstructorProfile
    from app.models.enrollment import Enrollment


class User(Base):
    """
    User model for students and instructors.

    Rows are provisioned from token claims on the first authenticated
    request; passwords and sessions live with the identity provider.

    Attributes:
        id: Subject identifier from the identity provider.
        email: Unique email address.
        name: Display name.
        image: Optional avatar URL.
        created_at: First time the user was seen.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    image: Mapped[Optional[str]] = mapped_column(
        String(512),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    # Relationships
    instructor_profile: Mapped[Optional["InstructorProfile"]] = relationship(
        "InstructorProfile",
        back_populates="user",
        uselist=False,
        lazy="selectin",
    )
    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment",
        back_populates="user",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
