"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import (
    categories,
    courses,
    enrollments,
    instructor,
    lessons,
    payments,
    progress,
    webhooks,
)

router = APIRouter()

# Catalog routes
router.include_router(categories.router)
router.include_router(courses.router)
router.include_router(lessons.router)
router.include_router(instructor.router)

# Enrollment and progress routes
router.include_router(enrollments.router)
router.include_router(progress.router)

# Payment routes
router.include_router(payments.router)
router.include_router(webhooks.router)
