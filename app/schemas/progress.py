"""
Progress Schemas

Pydantic models for enrollments and lesson progress tracking.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.models.enums import PaymentStatus
from app.schemas.base import CamelModel
from app.schemas.course import CourseResponse, InstructorSummary


# ============== Enrollment Schemas ==============

class EnrollmentCreate(CamelModel):
    """Schema for enrolling in a course."""

    course_id: str = Field(..., min_length=1, description="Course to enroll in")
    payment_id: Optional[str] = Field(default=None, description="Provider invoice ID, if paid")


class EnrollmentProgressUpdate(CamelModel):
    """Schema for overwriting an enrollment's progress."""

    course_id: Optional[str] = None
    progress: int = Field(..., ge=0, le=100, description="Completion percentage")
    completed_lessons: List[str] = Field(default_factory=list)


class EnrollmentResponse(CamelModel):
    id: str
    user_id: str
    course_id: str
    payment_status: PaymentStatus
    payment_id: Optional[str] = None
    progress: int
    completed_lessons: List[str] = []
    enrolled_at: datetime


class EnrollmentWithCourse(CamelModel):
    """Enrollment joined with its course summary."""

    enrollment: EnrollmentResponse
    course: CourseResponse
    instructor: Optional[InstructorSummary] = None


# ============== Lesson Progress Schemas ==============

class LessonCompletion(CamelModel):
    """Schema for marking a lesson complete (or toggling it)."""

    lesson_id: str = Field(..., min_length=1)
    course_id: str = Field(..., min_length=1)
    is_completed: Optional[bool] = Field(
        default=None,
        description="Desired state; omit to toggle",
    )


class WatchTimeUpdate(CamelModel):
    """Schema for the watch-time heartbeat."""

    lesson_id: str = Field(..., min_length=1)
    watch_time: int = Field(..., ge=0, description="Total seconds watched")


class LessonProgressResponse(CamelModel):
    id: str
    user_id: str
    lesson_id: str
    is_completed: bool
    completed_at: Optional[datetime] = None
    watch_time: int


class LessonCompletionResponse(CamelModel):
    """Upserted lesson progress with the recomputed enrollment."""

    lesson_progress: LessonProgressResponse
    enrollment: EnrollmentResponse


class CourseProgressResponse(CamelModel):
    enrollment: EnrollmentResponse
    completed_lessons: List[str]
    progress: int
