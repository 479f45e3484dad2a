"""Database models for course enrollments.

Cassandra table definitions for:
- Enrollments, partitioned by course (one row per enrolled student)
- Lookup table partitioned by user, for "my courses" listings

Both tables are written together on every change.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from coursemarket.utils import ensure_utc_aware, utc_now


class EnrollmentStatus(str, Enum):
    """Course enrollment status."""

    ACTIVE = "active"
    COMPLETED = "completed"


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition key: course_id ("who is enrolled in this course?")
ENROLLMENTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments (
    course_id UUID,
    user_id UUID,
    payment_id TEXT,
    status TEXT,
    enrolled_at TIMESTAMP,
    completed_at TIMESTAMP,
    PRIMARY KEY (course_id, user_id)
)
"""

# Lookup: courses per user
ENROLLMENTS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.enrollments_by_user (
    user_id UUID,
    course_id UUID,
    status TEXT,
    enrolled_at TIMESTAMP,
    completed_at TIMESTAMP,
    PRIMARY KEY (user_id, course_id)
)
"""

ENROLLMENTS_TABLES_CQL = [
    ENROLLMENTS_TABLE_CQL,
    ENROLLMENTS_BY_USER_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Enrollment:
    """Course enrollment entity.

    Attributes:
        course_id: Course UUID
        user_id: User UUID
        status: active or completed
        enrolled_at: Enrollment timestamp
        completed_at: First completion timestamp
        payment_id: Payment reference, when the course was bought
    """

    def __init__(
        self,
        course_id: UUID,
        user_id: UUID,
        status: str = EnrollmentStatus.ACTIVE.value,
        enrolled_at: datetime | None = None,
        completed_at: datetime | None = None,
        payment_id: str | None = None,
    ):
        self.course_id = course_id
        self.user_id = user_id
        self.status = status
        self.enrolled_at = ensure_utc_aware(enrolled_at) or utc_now()
        self.completed_at = ensure_utc_aware(completed_at)
        self.payment_id = payment_id

    @property
    def is_completed(self) -> bool:
        """Check if course is completed."""
        return self.status == EnrollmentStatus.COMPLETED.value

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row.

        Rows from the lookup table carry no payment id.
        """
        return cls(
            course_id=row.course_id,
            user_id=row.user_id,
            status=row.status or EnrollmentStatus.ACTIVE.value,
            enrolled_at=row.enrolled_at,
            completed_at=row.completed_at,
            payment_id=getattr(row, "payment_id", None),
        )

    def __repr__(self) -> str:
        return f"<Enrollment user={self.user_id} course={self.course_id} {self.status}>"
