"""Coursemarket progress API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursemarket.certificates.router import router as certificates_router
from coursemarket.certificates.service import CertificateService
from coursemarket.config import Settings, get_settings
from coursemarket.core.context import get_request_id
from coursemarket.core.database import init_async_cassandra, shutdown_async_cassandra
from coursemarket.core.errors import code_for_status
from coursemarket.core.logging import configure_structlog, get_logger
from coursemarket.core.middleware import RequestContextMiddleware
from coursemarket.curriculum.router import router as curriculum_router
from coursemarket.curriculum.service import CurriculumService
from coursemarket.enrollments.router import router as enrollments_router
from coursemarket.enrollments.service import EnrollmentService
from coursemarket.health import router as health_router
from coursemarket.progress.router import router as progress_router
from coursemarket.progress.service import ProgressService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


def build_services(app: FastAPI, session: Any, settings: Settings) -> None:
    """Create the services on top of a session and attach them to ``app.state``.

    Collaborators are passed explicitly; nothing is looked up globally.
    """
    keyspace = settings.cassandra_keyspace

    curriculum_service = CurriculumService(session=session, keyspace=keyspace)
    enrollment_service = EnrollmentService(session=session, keyspace=keyspace)

    app.state.cassandra_session = session
    app.state.curriculum_service = curriculum_service
    app.state.enrollment_service = enrollment_service
    app.state.progress_service = ProgressService(
        session=session,
        keyspace=keyspace,
        enrollment_service=enrollment_service,
        curriculum_service=curriculum_service,
    )
    app.state.certificate_service = CertificateService(
        session=session,
        keyspace=keyspace,
        enrollment_service=enrollment_service,
        base_url=settings.certificate_base_url,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")
        build_services(app, session, settings)
        logger.info("services_initialized")
    except Exception as e:
        # Endpoints answer 503 until the database is reachable
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def _get_request_id_safe(request: Request) -> str | None:
    """Get request_id from request state or context."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id
    return get_request_id() or None


def _error_body(
    request: Request, status_code: int, message: str, code: str
) -> dict[str, Any]:
    return {
        "error": True,
        "message": message,
        "code": code,
        "status_code": status_code,
        "request_id": _get_request_id_safe(request),
    }


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Stack traces never reach the client; the handlers below log them
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course progress and completion API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Render HTTP errors; 5xx details are replaced by a generic message."""
        code = getattr(exc, "code", None) or code_for_status(exc.status_code)
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            code=code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        is_server_error = exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
        message = (
            INTERNAL_ERROR_MESSAGE
            if is_server_error
            and exc.status_code != status.HTTP_503_SERVICE_UNAVAILABLE
            else str(exc.detail)
        )
        return ORJSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, message, code),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Missing or malformed input is a 400 naming the offending fields."""
        details = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", [])),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.warning(
            "validation_error",
            errors=details,
            path=request.url.path,
            method=request.method,
        )

        fields = ", ".join(d["field"] for d in details)
        content = _error_body(
            request,
            status.HTTP_400_BAD_REQUEST,
            f"Invalid or missing fields: {fields}" if fields else "Validation error",
            "validation_error",
        )
        content["details"] = details
        return ORJSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler: full details in the logs, generic message out."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )
        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(
                request,
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                INTERNAL_ERROR_MESSAGE,
                "internal_error",
            ),
        )

    app.include_router(health_router)
    app.include_router(curriculum_router)
    app.include_router(enrollments_router)
    app.include_router(progress_router)
    app.include_router(certificates_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "Coursemarket progress API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
