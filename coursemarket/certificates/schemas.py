"""Pydantic schemas for certificates."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from coursemarket.core.schemas import CamelModel

from .models import Certificate


class IssueCertificateRequest(CamelModel):
    """Request a certificate for a completed course."""

    user_id: UUID = Field(..., description="User UUID")
    course_id: UUID = Field(..., description="Course UUID")


class CertificateResponse(CamelModel):
    """Issued certificate."""

    id: UUID
    user_id: UUID
    course_id: UUID
    issued_at: datetime
    certificate_url: str | None = None

    @classmethod
    def from_entity(cls, entity: Certificate) -> "CertificateResponse":
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            course_id=entity.course_id,
            issued_at=entity.issued_at,
            certificate_url=entity.certificate_url,
        )
