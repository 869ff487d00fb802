"""
Progress Service

Lesson completion, watch-time heartbeats, and the enrollment progress
derived from them.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import insert_if_absent, utcnow
from app.core.exceptions import Forbidden, NotFound
from app.models.enrollment import Enrollment
from app.models.lesson import Lesson
from app.models.lesson_progress import LessonProgress
from app.models.user import User
from app.services.catalog_service import CatalogService
from app.services.enrollment_service import EnrollmentService


logger = logging.getLogger(__name__)


def completion_percentage(completed: int, total: int) -> int:
    """
    Percentage of completed lessons, rounded half up.

    Example: 1 of 3 -> 33, 2 of 3 -> 67, 1 of 8 -> 13.
    """
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


class ProgressService:
    """Progress tracker bound to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.enrollments = EnrollmentService(db)

    async def _require_enrollment(self, user_id: str, course_id: str) -> Enrollment:
        enrollment = await self.enrollments.find(user_id, course_id)
        if not enrollment:
            raise NotFound("Not enrolled in this course")
        return enrollment

    async def _get_progress_row(self, user_id: str, lesson_id: str) -> LessonProgress:
        """Fetch the (user, lesson) row, creating it if it does not exist yet."""
        await insert_if_absent(
            self.db,
            LessonProgress,
            {"user_id": user_id, "lesson_id": lesson_id},
            ("user_id", "lesson_id"),
        )
        result = await self.db.execute(
            select(LessonProgress)
            .where(
                LessonProgress.user_id == user_id,
                LessonProgress.lesson_id == lesson_id,
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def recompute_enrollment(self, enrollment: Enrollment) -> Tuple[int, List[str]]:
        """
        Recompute progress from the LessonProgress rows of the course's lessons.

        Must run after pending progress changes are flushed.

        Returns:
            (percentage, completed lesson ids in lesson order)
        """
        lessons = await self.db.execute(
            select(Lesson.id)
            .where(Lesson.course_id == enrollment.course_id)
            .order_by(Lesson.order_index, Lesson.created_at)
        )
        lesson_ids = list(lessons.scalars().all())

        done = await self.db.execute(
            select(LessonProgress.lesson_id)
            .join(Lesson, Lesson.id == LessonProgress.lesson_id)
            .where(
                LessonProgress.user_id == enrollment.user_id,
                Lesson.course_id == enrollment.course_id,
                LessonProgress.is_completed.is_(True),
            )
        )
        done_ids = set(done.scalars().all())

        completed = [lesson_id for lesson_id in lesson_ids if lesson_id in done_ids]
        percentage = completion_percentage(len(completed), len(lesson_ids))

        enrollment.completed_lessons = completed
        enrollment.progress = percentage
        return percentage, completed

    async def mark_lesson_complete(
        self,
        user: User,
        lesson_id: str,
        course_id: str,
        is_completed: Optional[bool] = None,
    ) -> Tuple[LessonProgress, Enrollment]:
        """
        Set or toggle a lesson's completion and refresh the enrollment.

        Args:
            user: Current user.
            lesson_id: Lesson to update.
            course_id: Course the lesson must belong to.
            is_completed: Desired state; None toggles the current one.

        Raises:
            NotFound: If the lesson is not in the course or the user is not enrolled.
            Forbidden: If the enrollment is unpaid and the lesson is not a free preview.
        """
        lesson = await CatalogService(self.db).get_lesson(lesson_id)
        if lesson.course_id != course_id:
            raise NotFound("Lesson not found in this course")

        enrollment = await self._require_enrollment(user.id, course_id)
        if not enrollment.has_access and not lesson.is_free:
            raise Forbidden("Payment required to access this lesson")

        progress = await self._get_progress_row(user.id, lesson_id)

        completed = (not progress.is_completed) if is_completed is None else is_completed
        progress.is_completed = completed
        progress.completed_at = utcnow() if completed else None

        await self.db.flush()
        percentage, _ = await self.recompute_enrollment(enrollment)
        await self.db.commit()

        logger.info(
            "User %s set lesson %s completed=%s (course %s now %s%%)",
            user.id, lesson_id, completed, course_id, percentage,
        )
        return progress, enrollment

    async def get_progress(self, user: User, course_id: str) -> Enrollment:
        """
        Get the stored progress for a course.

        Raises:
            NotFound: If the user is not enrolled.
        """
        return await self._require_enrollment(user.id, course_id)

    async def record_watch_time(self, user: User, lesson_id: str, watch_time: int) -> LessonProgress:
        """
        Heartbeat from the player. Watch time only ever grows.

        Raises:
            NotFound: If the lesson does not exist or the user is not enrolled.
        """
        lesson = await CatalogService(self.db).get_lesson(lesson_id)
        await self._require_enrollment(user.id, lesson.course_id)

        progress = await self._get_progress_row(user.id, lesson_id)
        if watch_time > progress.watch_time:
            progress.watch_time = watch_time
        await self.db.commit()

        return progress
