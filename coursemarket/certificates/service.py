"""Certificate issuance.

A certificate is issued once the enrollment is completed. Rendering the
document is handled elsewhere; this service only keeps the record and its URL.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from coursemarket.enrollments.service import NotEnrolledError

from .models import Certificate


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from coursemarket.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class CertificateError(Exception):
    """Base certificate error."""

    def __init__(self, message: str, code: str = "certificate_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class CourseNotCompletedError(CertificateError):
    """Enrollment exists but the course is not completed yet."""

    def __init__(self, message: str = "Course is not completed yet"):
        super().__init__(message, "course_not_completed")


class CertificateNotFoundError(CertificateError):
    """No certificate issued for the pair."""

    def __init__(self, message: str = "Certificate not found"):
        super().__init__(message, "certificate_not_found")


# ==============================================================================
# Certificate Service
# ==============================================================================


class CertificateService:
    """Issue and look up certificates of completion."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        enrollment_service: "EnrollmentService",
        base_url: str,
    ):
        self.session = session
        self.keyspace = keyspace
        self.enrollment_service = enrollment_service
        self.base_url = base_url.rstrip("/")
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements."""
        self._get_certificate = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.certificates
            WHERE user_id = ? AND course_id = ?
        """)

        self._insert_certificate = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.certificates
            (user_id, course_id, id, issued_at, certificate_url)
            VALUES (?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

    async def issue(self, user_id: UUID, course_id: UUID) -> Certificate:
        """Issue the certificate for a completed course.

        Issuing twice returns the certificate created the first time.

        Raises:
            NotEnrolledError: No enrollment for the pair
            CourseNotCompletedError: Enrollment still active
        """
        enrollment = await self.enrollment_service.find_one(user_id, course_id)
        if enrollment is None:
            raise NotEnrolledError
        if not enrollment.is_completed:
            raise CourseNotCompletedError

        certificate = Certificate(user_id=user_id, course_id=course_id)
        certificate.certificate_url = f"{self.base_url}/{certificate.id}"

        result = await self.session.aexecute(
            self._insert_certificate,
            [
                certificate.user_id,
                certificate.course_id,
                certificate.id,
                certificate.issued_at,
                certificate.certificate_url,
            ],
        )
        if not result.was_applied:
            return await self.get(user_id, course_id)

        logger.info(
            "certificate_issued",
            user_id=str(user_id),
            course_id=str(course_id),
            certificate_id=str(certificate.id),
        )
        return certificate

    async def get(self, user_id: UUID, course_id: UUID) -> Certificate:
        """Get an issued certificate.

        Raises:
            CertificateNotFoundError: Nothing issued for the pair
        """
        result = await self.session.aexecute(
            self._get_certificate, [user_id, course_id]
        )
        row = result.one()
        if row is None:
            raise CertificateNotFoundError
        return Certificate.from_row(row)
