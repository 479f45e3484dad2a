"""Database models for course certificates."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from coursemarket.utils import ensure_utc_aware, utc_now


# One certificate per (user, course)
CERTIFICATES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates (
    user_id UUID,
    course_id UUID,
    id UUID,
    issued_at TIMESTAMP,
    certificate_url TEXT,
    PRIMARY KEY (user_id, course_id)
)
"""

CERTIFICATES_TABLES_CQL = [
    CERTIFICATES_TABLE_CQL,
]


class Certificate:
    """Certificate of completion.

    Attributes:
        user_id: User UUID
        course_id: Course UUID
        id: Certificate UUID, part of the public URL
        issued_at: Issue timestamp
        certificate_url: Where the rendered certificate is served
    """

    def __init__(
        self,
        user_id: UUID,
        course_id: UUID,
        id: UUID | None = None,
        issued_at: datetime | None = None,
        certificate_url: str | None = None,
    ):
        self.user_id = user_id
        self.course_id = course_id
        self.id = id or uuid4()
        self.issued_at = ensure_utc_aware(issued_at) or utc_now()
        self.certificate_url = certificate_url

    @classmethod
    def from_row(cls, row: Any) -> "Certificate":
        """Create Certificate instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            course_id=row.course_id,
            id=row.id,
            issued_at=row.issued_at,
            certificate_url=row.certificate_url,
        )

    def __repr__(self) -> str:
        return f"<Certificate {self.id} user={self.user_id} course={self.course_id}>"
