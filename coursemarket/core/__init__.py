# Core infrastructure
from coursemarket.core.context import (
    RequestContext,
    clear_context,
    get_context,
    get_request_id,
    get_user_id,
    set_request_id,
    set_user_id,
)
from coursemarket.core.logging import configure_structlog, get_logger
from coursemarket.core.middleware import RequestContextMiddleware, set_user_context


__all__ = [
    "RequestContext",
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "set_request_id",
    "set_user_context",
    "set_user_id",
]
