"""Course catalog service.

Business logic for:
- Course creation and lookup (owner resolution for approval endpoints)
- Lesson registry per course (the lesson total used by progress aggregation)
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from .models import Course, Lesson


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CourseError(Exception):
    """Base course catalog error."""

    def __init__(self, message: str, code: str = "course_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotFoundError(CourseError):
    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "course_not_found")


class LessonNotFoundError(CourseError):
    def __init__(self, message: str = "Lesson not found in this course"):
        super().__init__(message, "lesson_not_found")


# ==============================================================================
# Course Service
# ==============================================================================


class CourseService:
    """Service for the course catalog."""

    def __init__(self, session: "Session", keyspace: str):
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (course_id, instructor_id, title, description, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

        self._insert_course_by_instructor = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_instructor
            (instructor_id, course_id, title, description, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

        self._get_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE course_id = ?
        """)

        self._list_by_instructor = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses_by_instructor
            WHERE instructor_id = ?
        """)

        # Full scan, only for the admin dashboard
        self._count_courses = self.session.prepare(f"""
            SELECT COUNT(*) FROM {self.keyspace}.courses
        """)

        self._insert_lesson = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_lessons
            (course_id, lesson_id, module_id, title, position, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
        """)

        self._get_lesson = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_lessons
            WHERE course_id = ? AND lesson_id = ?
        """)

        self._list_lessons = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_lessons WHERE course_id = ?
        """)

        self._delete_lesson = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.course_lessons
            WHERE course_id = ? AND lesson_id = ?
        """)

    # ==========================================================================
    # Courses
    # ==========================================================================

    async def create_course(
        self,
        instructor_id: UUID,
        title: str,
        description: str | None = None,
    ) -> Course:
        course = Course(instructor_id=instructor_id, title=title, description=description)
        values = [course.title, course.description, course.created_at, course.updated_at]

        await self.session.aexecute(
            self._insert_course, [course.course_id, course.instructor_id, *values]
        )
        await self.session.aexecute(
            self._insert_course_by_instructor,
            [course.instructor_id, course.course_id, *values],
        )

        logger.info(
            "course_created",
            course_id=str(course.course_id),
            instructor_id=str(instructor_id),
        )
        return course

    async def get_course(self, course_id: UUID) -> Course | None:
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def require_course(self, course_id: UUID) -> Course:
        """Get a course or raise CourseNotFoundError."""
        course = await self.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        return course

    async def list_by_instructor(self, instructor_id: UUID) -> list[Course]:
        rows = await self.session.aexecute(self._list_by_instructor, [instructor_id])
        courses = [Course.from_row(row) for row in rows]
        return sorted(courses, key=lambda c: c.created_at)

    async def count_courses(self) -> int:
        row = (await self.session.aexecute(self._count_courses)).one()
        return row.count if row else 0

    # ==========================================================================
    # Lessons
    # ==========================================================================

    async def add_lesson(
        self,
        course_id: UUID,
        title: str,
        module_id: UUID | None = None,
        position: int | None = None,
    ) -> Lesson:
        """Register a lesson; without a position it is appended."""
        await self.require_course(course_id)

        if position is None:
            lessons = await self.list_lessons(course_id)
            position = max((lesson.position for lesson in lessons), default=-1) + 1

        lesson = Lesson(
            course_id=course_id,
            title=title,
            module_id=module_id,
            position=position,
        )

        await self.session.aexecute(
            self._insert_lesson,
            [
                lesson.course_id,
                lesson.lesson_id,
                lesson.module_id,
                lesson.title,
                lesson.position,
                lesson.created_at,
            ],
        )

        logger.info(
            "lesson_added",
            course_id=str(course_id),
            lesson_id=str(lesson.lesson_id),
            position=position,
        )
        return lesson

    async def get_lesson(self, course_id: UUID, lesson_id: UUID) -> Lesson | None:
        result = await self.session.aexecute(self._get_lesson, [course_id, lesson_id])
        row = result.one()
        return Lesson.from_row(row) if row else None

    async def remove_lesson(self, course_id: UUID, lesson_id: UUID) -> None:
        """Remove a lesson from the registry.

        Stored progress for the lesson is left in place; aggregation ignores
        progress records of lessons no longer in the catalog.
        """
        if await self.get_lesson(course_id, lesson_id) is None:
            raise LessonNotFoundError

        await self.session.aexecute(self._delete_lesson, [course_id, lesson_id])
        logger.info(
            "lesson_removed",
            course_id=str(course_id),
            lesson_id=str(lesson_id),
        )

    async def list_lessons(self, course_id: UUID) -> list[Lesson]:
        """Lessons of a course ordered by position."""
        rows = await self.session.aexecute(self._list_lessons, [course_id])
        lessons = [Lesson.from_row(row) for row in rows]
        return sorted(lessons, key=lambda lesson: (lesson.position, str(lesson.lesson_id)))

    async def count_lessons(self, course_id: UUID) -> int:
        return len(await self.list_lessons(course_id))

    async def lesson_ids(self, course_id: UUID) -> set[UUID]:
        return {lesson.lesson_id for lesson in await self.list_lessons(course_id)}
