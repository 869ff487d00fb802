"""
Enrollment Routes

Endpoints for enrolling in courses and syncing enrollment progress.
"""

from typing import List

from fastapi import APIRouter, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.course import CourseResponse, InstructorSummary
from app.schemas.progress import (
    EnrollmentCreate,
    EnrollmentProgressUpdate,
    EnrollmentResponse,
    EnrollmentWithCourse,
)
from app.services.enrollment_service import EnrollmentService


router = APIRouter(prefix="/enrollments", tags=["Enrollments"])


@router.get(
    "",
    response_model=List[EnrollmentWithCourse],
    summary="List my enrollments",
)
async def list_enrollments(
    current_user: CurrentUser,
    db: DbSession,
) -> List[EnrollmentWithCourse]:
    """
    Get all of the caller's enrollments, most recent first, each joined
    with its course and the course instructor's profile.
    """
    enrollments = await EnrollmentService(db).list_enrollments(current_user.id)

    items = []
    for enrollment in enrollments:
        profile = enrollment.course.instructor_profile
        items.append(
            EnrollmentWithCourse(
                enrollment=EnrollmentResponse.model_validate(enrollment),
                course=CourseResponse.model_validate(enrollment.course),
                instructor=InstructorSummary.model_validate(profile) if profile else None,
            )
        )
    return items


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Enroll in a course",
)
async def enroll(
    data: EnrollmentCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> EnrollmentResponse:
    """
    Enroll the caller in a course.

    **Payment status:**
    - `paid` when a `paymentId` is supplied
    - `free` for a free course
    - `pending` for a priced course; the payment webhook settles it

    Args:
        data: Course ID and optional payment ID.
        current_user: Authenticated student.
        db: Database session.

    Returns:
        The new enrollment.

    Raises:
        NotFound: If the course does not exist.
        Conflict: If the caller is already enrolled.
    """
    enrollment = await EnrollmentService(db).enroll(
        user=current_user,
        course_id=data.course_id,
        payment_id=data.payment_id,
    )
    return EnrollmentResponse.model_validate(enrollment)


@router.put(
    "/{enrollment_id}",
    response_model=EnrollmentResponse,
    summary="Update enrollment progress",
)
async def update_enrollment(
    enrollment_id: str,
    data: EnrollmentProgressUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> EnrollmentResponse:
    """
    Overwrite the progress percentage and completed lesson set.

    Lesson IDs that are not part of the course are dropped.
    """
    enrollment = await EnrollmentService(db).update_progress(enrollment_id, current_user, data)
    return EnrollmentResponse.model_validate(enrollment)
