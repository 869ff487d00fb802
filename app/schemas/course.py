"""
Course Schemas

Pydantic models for category, course and lesson request/response validation.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import Field

from app.schemas.base import CamelModel


# ============== Category Schemas ==============

class CategoryCreate(CamelModel):
    """Schema for creating a category."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class CategoryResponse(CamelModel):
    id: str
    name: str
    slug: str
    description: Optional[str] = None


# ============== Lesson Schemas ==============

class LessonCreate(CamelModel):
    """Schema for creating a lesson."""

    course_id: str = Field(..., min_length=1, description="Parent course ID")
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    video_url: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0, description="Duration in seconds")
    materials: Optional[List[Any]] = None
    is_free: bool = Field(default=False, description="Free preview lesson")
    order_index: int = Field(default=0, ge=0)


class LessonUpdate(CamelModel):
    """Partial lesson update; omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = None
    video_url: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=0)
    materials: Optional[List[Any]] = None
    is_free: Optional[bool] = None
    order_index: Optional[int] = Field(default=None, ge=0)


class LessonResponse(CamelModel):
    id: str
    course_id: str
    title: str
    description: Optional[str] = None
    video_url: Optional[str] = None
    duration: Optional[int] = None
    materials: Optional[List[Any]] = None
    order_index: int
    is_free: bool


# ============== Course Schemas ==============

class CourseCreate(CamelModel):
    """Schema for creating a new course."""

    title: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    price: int = Field(default=0, ge=0, description="Price in the smallest currency unit")
    category_id: Optional[str] = None
    thumbnail: Optional[str] = None


class CourseUpdate(CamelModel):
    """Partial course update; omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=500)
    description: Optional[str] = Field(default=None, min_length=1)
    price: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[str] = None
    thumbnail: Optional[str] = None
    is_published: Optional[bool] = None


class InstructorSummary(CamelModel):
    user_id: str
    bio: Optional[str] = None
    expertise: Optional[List[str]] = None
    avatar: Optional[str] = None
    is_verified: bool = False


class CourseResponse(CamelModel):
    """Schema for a course without nested lessons."""

    id: str
    title: str
    slug: str
    description: str
    thumbnail: Optional[str] = None
    price: int
    category_id: Optional[str] = None
    instructor_id: str
    is_published: bool
    created_at: datetime


class CourseListItem(CourseResponse):
    category_name: Optional[str] = None


class CourseDetailResponse(CourseListItem):
    """Course with its instructor profile and ordered lessons."""

    instructor_profile: Optional[InstructorSummary] = None
    lessons: List[LessonResponse] = []


class InstructorCourseResponse(CamelModel):
    """Instructor dashboard row."""

    course: CourseResponse
    lesson_count: int
    enrollment_count: int
