"""
Catalog Service

Business logic for categories, courses and lessons, including instructor
ownership checks.
"""

import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import generate_id
from app.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from app.models.category import Category
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.lesson import Lesson
from app.models.user import User
from app.schemas.course import (
    CategoryCreate,
    CourseCreate,
    CourseUpdate,
    LessonCreate,
    LessonUpdate,
)


logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    """
    Turn a title into a URL slug.

    Example: "Intro to Python 3!" -> "intro-to-python-3"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower())
    return slug.strip("-")


class CatalogService:
    """Course, lesson and category access for one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ============== Categories ==============

    async def list_categories(self) -> List[Category]:
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def create_category(self, data: CategoryCreate) -> Category:
        slug = slugify(data.name)
        if not slug:
            raise ValidationError("Category name must contain letters or digits")

        result = await self.db.execute(
            select(Category).where(or_(Category.name == data.name, Category.slug == slug))
        )
        if result.scalar_one_or_none():
            raise Conflict(f"Category '{data.name}' already exists")

        category = Category(name=data.name, slug=slug, description=data.description)
        self.db.add(category)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    # ============== Courses ==============

    async def get_course(self, course_id: str) -> Course:
        """
        Get a specific course by ID.

        Raises:
            NotFound: If the course does not exist.
        """
        # Reload eager relationships so lessons added in this session are visible
        result = await self.db.execute(
            select(Course)
            .where(Course.id == course_id)
            .execution_options(populate_existing=True)
        )
        course = result.scalar_one_or_none()

        if not course:
            raise NotFound("Course not found")

        return course

    async def list_published_courses(
        self,
        category_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Course]:
        """
        Get published courses, newest first.

        Args:
            category_id: Optional category filter.
            search: Optional case-insensitive match on title or description.
        """
        query = select(Course).where(Course.is_published.is_(True))

        if category_id:
            query = query.where(Course.category_id == category_id)

        if search:
            search_term = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Course.title).like(search_term),
                    func.lower(Course.description).like(search_term),
                )
            )

        result = await self.db.execute(query.order_by(Course.created_at.desc()))
        return list(result.scalars().all())

    async def _unique_slug(self, title: str, exclude_id: Optional[str] = None) -> str:
        base = slugify(title) or "course"
        slug = base
        while True:
            query = select(Course.id).where(Course.slug == slug)
            if exclude_id:
                query = query.where(Course.id != exclude_id)
            result = await self.db.execute(query)
            if result.scalar_one_or_none() is None:
                return slug
            slug = f"{base}-{generate_id()[:8]}"

    async def _check_category(self, category_id: Optional[str]) -> None:
        if category_id and await self.db.get(Category, category_id) is None:
            raise ValidationError(f"Unknown category '{category_id}'")

    async def create_course(self, user: User, data: CourseCreate) -> Course:
        """
        Create a new, unpublished course owned by the caller.
        """
        await self._check_category(data.category_id)

        course = Course(
            title=data.title,
            slug=await self._unique_slug(data.title),
            description=data.description,
            price=data.price,
            category_id=data.category_id,
            thumbnail=data.thumbnail,
            instructor_id=user.id,
            is_published=False,
        )
        self.db.add(course)
        await self.db.commit()
        await self.db.refresh(course)

        logger.info("Course %s created by %s", course.id, user.id)
        return course

    def ensure_owner(self, course: Course, user: User) -> None:
        if course.instructor_id != user.id:
            raise Forbidden("You can only modify your own courses")

    async def update_course(self, course_id: str, user: User, data: CourseUpdate) -> Course:
        """
        Apply a partial update to a course.

        Raises:
            NotFound: If the course does not exist.
            Forbidden: If the caller is not the instructor.
        """
        course = await self.get_course(course_id)
        self.ensure_owner(course, user)

        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            await self._check_category(changes["category_id"])
        if changes.get("title") and changes["title"] != course.title:
            course.slug = await self._unique_slug(changes["title"], exclude_id=course.id)

        for field, value in changes.items():
            if value is None and field not in ("category_id", "thumbnail"):
                continue
            setattr(course, field, value)

        await self.db.commit()
        await self.db.refresh(course)
        return course

    async def delete_course(self, course_id: str, user: User) -> None:
        course = await self.get_course(course_id)
        self.ensure_owner(course, user)

        await self.db.delete(course)
        await self.db.commit()
        logger.info("Course %s deleted by %s", course_id, user.id)

    async def get_instructor_courses(self, user: User) -> List[Tuple[Course, int, int]]:
        """
        Get the caller's courses with lesson and enrollment counts.

        Returns:
            List of (course, lesson_count, enrollment_count), newest first.
        """
        lesson_count = (
            select(func.count(Lesson.id))
            .where(Lesson.course_id == Course.id)
            .correlate(Course)
            .scalar_subquery()
        )
        enrollment_count = (
            select(func.count(Enrollment.id))
            .where(Enrollment.course_id == Course.id)
            .correlate(Course)
            .scalar_subquery()
        )
        result = await self.db.execute(
            select(Course, lesson_count, enrollment_count)
            .where(Course.instructor_id == user.id)
            .order_by(Course.created_at.desc())
        )
        return [(row[0], row[1] or 0, row[2] or 0) for row in result.all()]

    # ============== Lessons ==============

    async def list_lessons(self, course_id: str) -> List[Lesson]:
        result = await self.db.execute(
            select(Lesson)
            .where(Lesson.course_id == course_id)
            .order_by(Lesson.order_index, Lesson.created_at)
        )
        return list(result.scalars().all())

    async def get_lesson(self, lesson_id: str) -> Lesson:
        lesson = await self.db.get(Lesson, lesson_id)
        if not lesson:
            raise NotFound("Lesson not found")
        return lesson

    async def create_lesson(self, user: User, data: LessonCreate) -> Lesson:
        course = await self.get_course(data.course_id)
        self.ensure_owner(course, user)

        lesson = Lesson(**data.model_dump())
        self.db.add(lesson)
        await self.db.commit()
        await self.db.refresh(lesson)
        return lesson

    async def update_lesson(self, lesson_id: str, user: User, data: LessonUpdate) -> Lesson:
        lesson = await self.get_lesson(lesson_id)
        course = await self.get_course(lesson.course_id)
        self.ensure_owner(course, user)

        for field, value in data.model_dump(exclude_unset=True).items():
            # title, is_free and order_index are NOT NULL
            if value is None and field in ("title", "is_free", "order_index"):
                continue
            setattr(lesson, field, value)

        await self.db.commit()
        await self.db.refresh(lesson)
        return lesson

    async def delete_lesson(self, lesson_id: str, user: User) -> None:
        lesson = await self.get_lesson(lesson_id)
        course = await self.get_course(lesson.course_id)
        self.ensure_owner(course, user)

        await self.db.delete(lesson)
        await self.db.commit()
