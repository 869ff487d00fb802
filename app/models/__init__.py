"""
Course Marketplace Backend - Models Module

This module exports all SQLAlchemy models for the application.
Import Base for Alembic migrations.
"""

from app.core.database import Base

# Enums
from app.models.enums import (
    PaymentStatus,
    InvoiceStatus,
    WebhookOutcome,
)

# Models
from app.models.user import User
from app.models.instructor_profile import InstructorProfile
from app.models.category import Category
from app.models.course import Course
from app.models.lesson import Lesson
from app.models.enrollment import Enrollment
from app.models.lesson_progress import LessonProgress
from app.models.payment_invoice import PaymentInvoice

__all__ = [
    # Base
    "Base",
    # Enums
    "PaymentStatus",
    "InvoiceStatus",
    "WebhookOutcome",
    # Models
    "User",
    "InstructorProfile",
    "Category",
    "Course",
    "Lesson",
    "Enrollment",
    "LessonProgress",
    "PaymentInvoice",
]
