"""Certificates of course completion."""

from .models import CERTIFICATES_TABLES_CQL, Certificate
from .service import (
    CertificateError,
    CertificateNotFoundError,
    CertificateService,
    CourseNotCompletedError,
)


__all__ = [
    "CERTIFICATES_TABLES_CQL",
    "Certificate",
    "CertificateError",
    "CertificateNotFoundError",
    "CertificateService",
    "CourseNotCompletedError",
]
