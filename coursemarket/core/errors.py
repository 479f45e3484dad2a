"""HTTP error carrying a machine-readable code.

Feature routers convert their service errors into ``CodedHTTPException`` so the
global handler can put the code in the response body next to the message.
"""

from collections.abc import Mapping
from typing import Protocol

from fastapi import HTTPException, status


class CodedError(Protocol):
    message: str
    code: str


DEFAULT_CODES = {
    status.HTTP_400_BAD_REQUEST: "validation_error",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_503_SERVICE_UNAVAILABLE: "service_unavailable",
}


class CodedHTTPException(HTTPException):
    """HTTPException with an error code."""

    def __init__(self, status_code: int, detail: str, code: str):
        super().__init__(status_code=status_code, detail=detail)
        self.code = code


def code_for_status(status_code: int) -> str:
    """Fallback code for HTTP errors raised without one."""
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return "internal_error"
    return DEFAULT_CODES.get(status_code, "http_error")


def to_http_exception(
    error: CodedError, status_map: Mapping[str, int]
) -> CodedHTTPException:
    """Map a service error to an HTTP error; unknown codes become 500."""
    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return CodedHTTPException(status_code, error.message, error.code)
