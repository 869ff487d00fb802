"""
Progress Routes

Endpoints for lesson completion and watch-time tracking.
"""

from fastapi import APIRouter, Query

from app.api.deps import CurrentUser, DbSession
from app.schemas.progress import (
    CourseProgressResponse,
    EnrollmentResponse,
    LessonCompletion,
    LessonCompletionResponse,
    LessonProgressResponse,
    WatchTimeUpdate,
)
from app.services.progress_service import ProgressService


router = APIRouter(prefix="/progress", tags=["Progress"])


@router.get(
    "",
    response_model=CourseProgressResponse,
    summary="Get course progress",
)
async def get_progress(
    current_user: CurrentUser,
    db: DbSession,
    course_id: str = Query(..., alias="courseId"),
) -> CourseProgressResponse:
    """
    Get the caller's completed lessons and percentage for a course.

    Raises:
        NotFound: If the caller is not enrolled.
    """
    enrollment = await ProgressService(db).get_progress(current_user, course_id)
    return CourseProgressResponse(
        enrollment=EnrollmentResponse.model_validate(enrollment),
        completed_lessons=list(enrollment.completed_lessons or []),
        progress=enrollment.progress,
    )


@router.post(
    "",
    response_model=LessonCompletionResponse,
    summary="Mark a lesson complete",
)
async def mark_lesson_complete(
    data: LessonCompletion,
    current_user: CurrentUser,
    db: DbSession,
) -> LessonCompletionResponse:
    """
    Set or toggle a lesson's completion.

    When `isCompleted` is omitted the current state is toggled. The
    enrollment's percentage and completed lessons are recomputed in the
    same transaction.

    Args:
        data: Lesson, course and optional desired state.
        current_user: Authenticated student.
        db: Database session.

    Returns:
        The lesson progress row and the updated enrollment.
    """
    progress, enrollment = await ProgressService(db).mark_lesson_complete(
        user=current_user,
        lesson_id=data.lesson_id,
        course_id=data.course_id,
        is_completed=data.is_completed,
    )
    return LessonCompletionResponse(
        lesson_progress=LessonProgressResponse.model_validate(progress),
        enrollment=EnrollmentResponse.model_validate(enrollment),
    )


@router.post(
    "/heartbeat",
    response_model=LessonProgressResponse,
    summary="Update watch time",
)
async def heartbeat(
    data: WatchTimeUpdate,
    current_user: CurrentUser,
    db: DbSession,
) -> LessonProgressResponse:
    """
    Update the watch time for a lesson.

    Called periodically by the player. Watch time never decreases.
    """
    progress = await ProgressService(db).record_watch_time(
        user=current_user,
        lesson_id=data.lesson_id,
        watch_time=data.watch_time,
    )
    return LessonProgressResponse.model_validate(progress)
