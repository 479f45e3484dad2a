"""Pydantic schemas for enrollments."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from coursemarket.core.schemas import CamelModel

from .models import Enrollment, EnrollmentStatus


class EnrollRequest(CamelModel):
    """Request to enroll a user in a course.

    The status is not accepted from clients.
    """

    user_id: UUID = Field(..., description="User UUID")
    course_id: UUID = Field(..., description="Course UUID")
    payment_id: str | None = Field(default=None, max_length=200)


class EnrollmentResponse(CamelModel):
    """Enrollment response."""

    user_id: UUID
    course_id: UUID
    status: EnrollmentStatus
    enrolled_at: datetime
    completed_at: datetime | None = None
    payment_id: str | None = None

    @classmethod
    def from_entity(cls, entity: Enrollment) -> "EnrollmentResponse":
        """Create response from entity."""
        return cls(
            user_id=entity.user_id,
            course_id=entity.course_id,
            status=EnrollmentStatus(entity.status),
            enrolled_at=entity.enrolled_at,
            completed_at=entity.completed_at,
            payment_id=entity.payment_id,
        )


class EnrollmentListResponse(CamelModel):
    """List of a user's enrollments."""

    items: list[EnrollmentResponse]
    total: int
