"""Course enrollments."""

from .models import ENROLLMENTS_TABLES_CQL, Enrollment, EnrollmentStatus
from .service import (
    AlreadyEnrolledError,
    EnrollmentError,
    EnrollmentNotFoundError,
    EnrollmentService,
    NotEnrolledError,
)


__all__ = [
    "ENROLLMENTS_TABLES_CQL",
    "AlreadyEnrolledError",
    "Enrollment",
    "EnrollmentError",
    "EnrollmentNotFoundError",
    "EnrollmentService",
    "EnrollmentStatus",
    "NotEnrolledError",
]
