"""
Course Marketplace Backend - Schemas Module

Pydantic models for request/response validation.
"""

from app.schemas.course import (
    CategoryCreate,
    CategoryResponse,
    CourseCreate,
    CourseUpdate,
    CourseResponse,
    CourseDetailResponse,
    LessonCreate,
    LessonUpdate,
    LessonResponse,
)
from app.schemas.progress import (
    EnrollmentCreate,
    EnrollmentResponse,
    EnrollmentProgressUpdate,
    LessonCompletion,
    CourseProgressResponse,
)
from app.schemas.payment import CustomerInfo, InvoiceCreate, InvoiceResponse, WebhookEvent
from app.schemas.error import ErrorDetail, ErrorResponse

__all__ = [
    # Catalog
    "CategoryCreate",
    "CategoryResponse",
    "CourseCreate",
    "CourseUpdate",
    "CourseResponse",
    "CourseDetailResponse",
    "LessonCreate",
    "LessonUpdate",
    "LessonResponse",
    # Enrollment & progress
    "EnrollmentCreate",
    "EnrollmentResponse",
    "EnrollmentProgressUpdate",
    "LessonCompletion",
    "CourseProgressResponse",
    # Payments
    "InvoiceCreate",
    "CustomerInfo",
    "InvoiceResponse",
    "WebhookEvent",
    # Errors
    "ErrorDetail",
    "ErrorResponse",
]
