"""
Instructor Routes

Dashboard data for the authenticated instructor.
"""

from typing import List

from fastapi import APIRouter

from app.api.deps import CurrentUser, DbSession
from app.schemas.course import CourseResponse, InstructorCourseResponse
from app.services.catalog_service import CatalogService


router = APIRouter(prefix="/instructor", tags=["Instructor"])


@router.get(
    "/courses",
    response_model=List[InstructorCourseResponse],
    summary="List my courses with stats",
)
async def list_my_courses(
    current_user: CurrentUser,
    db: DbSession,
) -> List[InstructorCourseResponse]:
    """
    Get the caller's courses, published or not, with lesson and
    enrollment counts.
    """
    rows = await CatalogService(db).get_instructor_courses(current_user)
    return [
        InstructorCourseResponse(
            course=CourseResponse.model_validate(course),
            lesson_count=lesson_count,
            enrollment_count=enrollment_count,
        )
        for course, lesson_count, enrollment_count in rows
    ]
