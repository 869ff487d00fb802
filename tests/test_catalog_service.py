"""
Catalog Service Tests

Categories, courses and lessons, including instructor ownership.
"""

import pytest
import pytest_asyncio

from app.core.exceptions import Conflict, Forbidden, NotFound, ValidationError
from app.schemas.course import (
    CategoryCreate,
    CourseCreate,
    CourseUpdate,
    LessonCreate,
    LessonUpdate,
)
from app.services.catalog_service import CatalogService, slugify
from app.services.enrollment_service import EnrollmentService


class TestSlugify:
    @pytest.mark.parametrize(
        "title, slug",
        [
            ("Intro to Python 3!", "intro-to-python-3"),
            ("  Data -- Science  ", "data-science"),
            ("???", ""),
        ],
    )
    def test_slugify(self, title, slug):
        assert slugify(title) == slug


@pytest_asyncio.fixture
async def owner(make_user):
    return await make_user("owner-1", bio="Course author")


@pytest_asyncio.fixture
async def stranger(make_user):
    return await make_user("stranger-1")


class TestCategories:
    @pytest.mark.asyncio
    async def test_create_and_list(self, db_session):
        service = CatalogService(db_session)
        await service.create_category(CategoryCreate(name="Web Development"))
        await service.create_category(CategoryCreate(name="Data Science"))

        categories = await service.list_categories()

        assert [c.name for c in categories] == ["Data Science", "Web Development"]
        assert categories[1].slug == "web-development"

    @pytest.mark.asyncio
    async def test_duplicate_name(self, db_session):
        service = CatalogService(db_session)
        await service.create_category(CategoryCreate(name="Design"))

        with pytest.raises(Conflict):
            await service.create_category(CategoryCreate(name="Design"))


class TestCourses:
    """Tests for course CRUD."""

    @pytest.mark.asyncio
    async def test_create_is_unpublished_with_slug(self, db_session, owner):
        course = await CatalogService(db_session).create_course(
            owner, CourseCreate(title="Machine Learning 101", description="Basics", price=250000),
        )

        assert course.is_published is False
        assert course.slug == "machine-learning-101"
        assert course.instructor_id == owner.id
        assert course.instructor_profile.bio == "Course author"

    @pytest.mark.asyncio
    async def test_slug_collision_gets_suffix(self, db_session, owner):
        service = CatalogService(db_session)
        first = await service.create_course(owner, CourseCreate(title="SQL", description="a"))
        second = await service.create_course(owner, CourseCreate(title="SQL", description="b"))

        assert first.slug == "sql"
        assert second.slug.startswith("sql-")
        assert second.slug != first.slug

    @pytest.mark.asyncio
    async def test_unknown_category(self, db_session, owner):
        with pytest.raises(ValidationError):
            await CatalogService(db_session).create_course(
                owner, CourseCreate(title="X", description="y", category_id="nope"),
            )

    @pytest.mark.asyncio
    async def test_list_published_filters(self, db_session, owner, make_course):
        service = CatalogService(db_session)
        category = await service.create_category(CategoryCreate(name="Data"))
        await make_course(owner, title="Pandas Deep Dive", category=category)
        await make_course(owner, title="Draft Course", is_published=False)
        await make_course(owner, title="Guitar Basics")

        assert len(await service.list_published_courses()) == 2
        by_category = await service.list_published_courses(category_id=category.id)
        assert [c.title for c in by_category] == ["Pandas Deep Dive"]
        assert by_category[0].category_name == "Data"
        by_search = await service.list_published_courses(search="GUITAR")
        assert [c.title for c in by_search] == ["Guitar Basics"]

    @pytest.mark.asyncio
    async def test_update_requires_owner(self, db_session, owner, stranger, make_course):
        course = await make_course(owner)

        with pytest.raises(Forbidden):
            await CatalogService(db_session).update_course(
                course.id, stranger, CourseUpdate(is_published=False),
            )

    @pytest.mark.asyncio
    async def test_partial_update(self, db_session, owner, make_course):
        course = await make_course(owner, price=1000, is_published=False)

        updated = await CatalogService(db_session).update_course(
            course.id, owner, CourseUpdate(title="Renamed Course", is_published=True),
        )

        assert updated.title == "Renamed Course"
        assert updated.slug == "renamed-course"
        assert updated.is_published is True
        assert updated.price == 1000

    @pytest.mark.asyncio
    async def test_delete(self, db_session, owner, stranger, make_course, make_lesson):
        course = await make_course(owner)
        await make_lesson(course, 0)
        service = CatalogService(db_session)

        with pytest.raises(Forbidden):
            await service.delete_course(course.id, stranger)

        await service.delete_course(course.id, owner)

        with pytest.raises(NotFound):
            await service.get_course(course.id)
        assert await service.list_lessons(course.id) == []

    @pytest.mark.asyncio
    async def test_instructor_dashboard_counts(self, db_session, owner, stranger, make_course, make_lesson):
        course = await make_course(owner)
        await make_lesson(course, 0)
        await make_lesson(course, 1)
        await make_course(owner, title="Empty Course")
        await EnrollmentService(db_session).enroll(stranger, course.id)

        rows = await CatalogService(db_session).get_instructor_courses(owner)

        counts = {c.id: (lessons, enrollments) for c, lessons, enrollments in rows}
        assert counts[course.id] == (2, 1)
        assert len(rows) == 2


class TestLessons:
    """Tests for lesson CRUD."""

    @pytest.mark.asyncio
    async def test_create_and_list_in_order(self, db_session, owner, make_course):
        course = await make_course(owner)
        service = CatalogService(db_session)
        await service.create_lesson(owner, LessonCreate(course_id=course.id, title="Second", order_index=1))
        await service.create_lesson(owner, LessonCreate(course_id=course.id, title="First", order_index=0))

        lessons = await service.list_lessons(course.id)

        assert [lesson.title for lesson in lessons] == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_create_requires_owner(self, db_session, owner, stranger, make_course):
        course = await make_course(owner)

        with pytest.raises(Forbidden):
            await CatalogService(db_session).create_lesson(
                stranger, LessonCreate(course_id=course.id, title="Sneaky"),
            )

    @pytest.mark.asyncio
    async def test_update_and_delete(self, db_session, owner, make_course, make_lesson):
        course = await make_course(owner)
        lesson = await make_lesson(course, 0)
        service = CatalogService(db_session)

        updated = await service.update_lesson(
            lesson.id, owner, LessonUpdate(title="Welcome", is_free=True),
        )
        assert updated.title == "Welcome"
        assert updated.is_free is True

        await service.delete_lesson(lesson.id, owner)
        with pytest.raises(NotFound):
            await service.get_lesson(lesson.id)
