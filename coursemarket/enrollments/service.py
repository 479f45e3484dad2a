"""Enrollment store.

Business logic for:
- Enrolling a user in a course (at most one enrollment per pair)
- Lookups by pair and by user
- Status transitions driven by the progress engine
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemarket.utils import utc_now

from .models import Enrollment, EnrollmentStatus


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class EnrollmentError(Exception):
    """Base enrollment error."""

    def __init__(self, message: str, code: str = "enrollment_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotEnrolledError(EnrollmentError):
    """User not enrolled in course."""

    def __init__(self, message: str = "User is not enrolled in this course"):
        super().__init__(message, "not_enrolled")


class AlreadyEnrolledError(EnrollmentError):
    """User already enrolled."""

    def __init__(self, message: str = "User is already enrolled in this course"):
        super().__init__(message, "already_enrolled")


class EnrollmentNotFoundError(EnrollmentError):
    """No enrollment for the requested pair."""

    def __init__(self, message: str = "Enrollment not found"):
        super().__init__(message, "enrollment_not_found")


# ==============================================================================
# Enrollment Service
# ==============================================================================


class EnrollmentService:
    """Enrollment persistence with dual-write to the by-user lookup table."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments
            WHERE course_id = ? AND user_id = ?
        """)

        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.enrollments
            (course_id, user_id, payment_id, status, enrolled_at, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._complete_enrollment = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments
            SET status = ?, completed_at = ?
            WHERE course_id = ? AND user_id = ?
            IF status = ?
        """)

        self._get_user_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.enrollments_by_user
            WHERE user_id = ?
        """)

        self._upsert_enrollment_by_user = self.session.prepare(f"""
            UPDATE {self.keyspace}.enrollments_by_user
            SET status = ?, enrolled_at = ?, completed_at = ?
            WHERE user_id = ? AND course_id = ?
        """)

    async def find_one(self, user_id: UUID, course_id: UUID) -> Enrollment | None:
        """Get enrollment by user and course."""
        result = await self.session.aexecute(self._get_enrollment, [course_id, user_id])
        row = result.one()
        return Enrollment.from_row(row) if row else None

    async def create(
        self,
        user_id: UUID,
        course_id: UUID,
        payment_id: str | None = None,
    ) -> Enrollment:
        """Enroll user in a course.

        The insert is a lightweight transaction, so two concurrent requests for
        the same pair cannot both succeed.

        Raises:
            AlreadyEnrolledError: If user already enrolled
        """
        enrollment = Enrollment(
            course_id=course_id,
            user_id=user_id,
            status=EnrollmentStatus.ACTIVE.value,
            enrolled_at=utc_now(),
            payment_id=payment_id,
        )

        result = await self.session.aexecute(
            self._insert_enrollment,
            [
                enrollment.course_id,
                enrollment.user_id,
                enrollment.payment_id,
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.completed_at,
            ],
        )
        if not result.was_applied:
            logger.info(
                "enrollment_duplicate_rejected",
                user_id=str(user_id),
                course_id=str(course_id),
            )
            raise AlreadyEnrolledError

        await self._write_lookup(enrollment)

        logger.info(
            "enrollment_created",
            user_id=str(user_id),
            course_id=str(course_id),
            paid=payment_id is not None,
        )
        return enrollment

    async def upsert_status(
        self,
        user_id: UUID,
        course_id: UUID,
        status: EnrollmentStatus,
    ) -> tuple[Enrollment, bool]:
        """Set the enrollment status, creating the enrollment when missing.

        A completed enrollment stays completed. The move to ``completed`` is
        a conditional write (``IF status = 'active'``), so when several calls
        race only one of them applies it and ``completed_at`` keeps the time
        of that first completion.

        Returns:
            The stored enrollment and whether this call changed it
        """
        target = EnrollmentStatus(status)

        existing = await self.find_one(user_id, course_id)
        if existing is None:
            created = await self._insert_missing(user_id, course_id, target)
            if created is not None:
                return created, True
            existing = await self.find_one(user_id, course_id)

        if existing.is_completed or target is EnrollmentStatus.ACTIVE:
            return existing, False

        now = utc_now()
        result = await self.session.aexecute(
            self._complete_enrollment,
            [
                EnrollmentStatus.COMPLETED.value,
                now,
                course_id,
                user_id,
                EnrollmentStatus.ACTIVE.value,
            ],
        )
        if not result.was_applied:
            logger.debug(
                "enrollment_already_completed",
                user_id=str(user_id),
                course_id=str(course_id),
            )
            return await self.find_one(user_id, course_id), False

        existing.status = EnrollmentStatus.COMPLETED.value
        existing.completed_at = now
        await self._write_lookup(existing)

        logger.info(
            "enrollment_status_updated",
            user_id=str(user_id),
            course_id=str(course_id),
            status=existing.status,
            created=False,
        )
        return existing, True

    async def _insert_missing(
        self, user_id: UUID, course_id: UUID, status: EnrollmentStatus
    ) -> Enrollment | None:
        """Insert the enrollment in ``status``; None if it already exists."""
        now = utc_now()
        enrollment = Enrollment(
            course_id=course_id,
            user_id=user_id,
            status=status.value,
            enrolled_at=now,
            completed_at=now if status is EnrollmentStatus.COMPLETED else None,
        )
        result = await self.session.aexecute(
            self._insert_enrollment,
            [
                enrollment.course_id,
                enrollment.user_id,
                enrollment.payment_id,
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.completed_at,
            ],
        )
        if not result.was_applied:
            return None

        await self._write_lookup(enrollment)

        logger.info(
            "enrollment_status_updated",
            user_id=str(user_id),
            course_id=str(course_id),
            status=enrollment.status,
            created=True,
        )
        return enrollment

    async def list_for_user(self, user_id: UUID) -> list[Enrollment]:
        """Get all enrollments for a user, newest first."""
        rows = await self.session.aexecute(self._get_user_enrollments, [user_id])
        enrollments = [Enrollment.from_row(row) for row in rows]
        enrollments.sort(key=lambda e: e.enrolled_at, reverse=True)
        return enrollments

    async def _write_lookup(self, enrollment: Enrollment) -> None:
        await self.session.aexecute(
            self._upsert_enrollment_by_user,
            [
                enrollment.status,
                enrollment.enrolled_at,
                enrollment.completed_at,
                enrollment.user_id,
                enrollment.course_id,
            ],
        )
