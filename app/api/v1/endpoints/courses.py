"""
Course Routes

Endpoints for browsing and managing courses.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from app.api.deps import CurrentUser, DbSession
from app.schemas.course import (
    CourseCreate,
    CourseDetailResponse,
    CourseListItem,
    CourseUpdate,
)
from app.services.catalog_service import CatalogService


router = APIRouter(prefix="/courses", tags=["Courses"])


@router.get(
    "",
    response_model=List[CourseListItem],
    summary="List published courses",
)
async def list_courses(
    db: DbSession,
    category_id: Optional[str] = Query(None, alias="categoryId", description="Filter by category"),
    search: Optional[str] = Query(None, description="Search title and description"),
) -> List[CourseListItem]:
    """
    Get all published courses, newest first.

    Args:
        db: Database session.
        category_id: Optional category filter.
        search: Optional case-insensitive text search.

    Returns:
        Published courses with their category name.
    """
    courses = await CatalogService(db).list_published_courses(category_id=category_id, search=search)
    return [CourseListItem.model_validate(course) for course in courses]


@router.post(
    "",
    response_model=CourseDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a course",
)
async def create_course(
    data: CourseCreate,
    current_user: CurrentUser,
    db: DbSession,
) -> CourseDetailResponse:
    """
    Create a new course owned by the caller.

    New courses start unpublished; publish with `PUT /courses/{id}`.
    """
    course = await CatalogService(db).create_course(current_user, data)
    return CourseDetailResponse.model_validate(course)


@router.get(
    "/{course_id}",
    response_model=CourseDetailResponse,
    summary="Get course details",
)
async def get_course(
    course_id: str,
    db: DbSession,
) -> CourseDetailResponse:
    """
    Get a course with its category, instructor profile and ordered lessons.

    Raises:
        NotFound: If the course does not exist.
    """
    course = await CatalogService(db).get_course(course_id)
    return CourseDetailResponse.model_validate(course)


@router.put(
    "/{course_id}",
    response_model=CourseDetailResponse,
    summary="Update a course",
)
async def update_course(
    course_id: str,
    data: CourseUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> CourseDetailResponse:
    course = await CatalogService(db).update_course(course_id, current_user, data)
    return CourseDetailResponse.model_validate(course)


@router.delete(
    "/{course_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a course",
)
async def delete_course(
    course_id: str,
    current_user: CurrentUser,
    db: DbSession,
) -> Response:
    await CatalogService(db).delete_course(course_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
