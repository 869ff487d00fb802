"""
Lesson Routes

Endpoints for listing and managing the lessons of a course.
"""

from typing import List

from fastapi import APIRouter, Query, Response, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.course import LessonCreate, LessonResponse, LessonUpdate
from app.services.catalog_service import CatalogService


router = APIRouter(prefix="/lessons", tags=["Lessons"])


@router.get(
    "",
    response_model=List[LessonResponse],
    summary="List lessons of a course",
)
async def list_lessons(
    db: DbSession,
    course_id: str = Query(..., alias="courseId", description="Parent course"),
) -> List[LessonResponse]:
    """
    Get a course's lessons ordered by their order index.

    Args:
        db: Database session.
        course_id: Course whose lessons to list.
    """
    lessons = await CatalogService(db).list_lessons(course_id)
    return [LessonResponse.model_validate(lesson) for lesson in lessons]


@router.post(
    "",
    response_model=LessonResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a lesson",
)
async def create_lesson(
    data: LessonCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> LessonResponse:
    """
    Add a lesson to one of the caller's courses.

    Raises:
        NotFound: If the course does not exist.
        Forbidden: If the caller is not the course instructor.
    """
    lesson = await CatalogService(db).create_lesson(current_user, data)
    return LessonResponse.model_validate(lesson)


@router.put(
    "/{lesson_id}",
    response_model=LessonResponse,
    summary="Update a lesson",
)
async def update_lesson(
    lesson_id: str,
    data: LessonUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> LessonResponse:
    lesson = await CatalogService(db).update_lesson(lesson_id, current_user, data)
    return LessonResponse.model_validate(lesson)


@router.delete(
    "/{lesson_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a lesson",
)
async def delete_lesson(
    lesson_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> Response:
    await CatalogService(db).delete_lesson(lesson_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
