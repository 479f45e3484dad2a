"""HTTP client for the progress API.

Used by the course player backend to push watch events. Transient failures
(network errors, timeouts, 408, 429, 5xx) are retried with a fixed delay;
any other 4xx answer is final, in particular ``lesson_not_in_course``.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import UUID

import httpx
import structlog

from coursemarket.config import Settings


logger = structlog.get_logger(__name__)

RETRYABLE_STATUS_CODES = frozenset({408, 429})


class ProgressClientError(Exception):
    """Progress API call failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        retryable: bool = False,
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        self.retryable = retryable
        super().__init__(message)


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or status_code >= 500


class ProgressClient:
    """Async client for ``POST /progress`` and ``GET /progress/{user}/{course}``."""

    def __init__(
        self,
        base_url: str,
        max_attempts: int = 3,
        backoff_seconds: float = 1.0,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._sleep = sleep
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ProgressClient":
        return cls(
            base_url=settings.progress_api_base_url,
            max_attempts=settings.progress_client_max_attempts,
            backoff_seconds=settings.progress_client_backoff_seconds,
            timeout=settings.progress_client_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "ProgressClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def save_progress(
        self,
        user_id: UUID,
        course_id: UUID,
        lesson_id: UUID,
        progress: float,
        completed: bool = False,
    ) -> dict[str, Any]:
        """Send a watch event, retrying transient failures.

        Returns:
            Decoded response body

        Raises:
            ProgressClientError: Final failure (non-retryable or attempts exhausted)
        """
        payload = {
            "userId": str(user_id),
            "courseId": str(course_id),
            "lessonId": str(lesson_id),
            "progress": progress,
            "completed": completed,
        }

        attempt = 1
        while True:
            try:
                return await self._request("POST", "/progress", json=payload)
            except ProgressClientError as e:
                if not e.retryable:
                    raise
                logger.warning(
                    "progress_save_failed",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    status_code=e.status_code,
                    error=e.message,
                )
                if attempt >= self.max_attempts:
                    logger.error(
                        "progress_save_gave_up",
                        lesson_id=str(lesson_id),
                        attempts=self.max_attempts,
                    )
                    raise
            await self._sleep(self.backoff_seconds)
            attempt += 1

    async def get_progress(self, user_id: UUID, course_id: UUID) -> dict[str, Any]:
        """Fetch a user's progress in a course (single attempt)."""
        return await self._request("GET", f"/progress/{user_id}/{course_id}")

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProgressClientError("Progress API timeout", retryable=True) from e
        except httpx.RequestError as e:
            raise ProgressClientError(
                f"Progress API request error: {e}", retryable=True
            ) from e

        if response.is_success:
            return response.json()

        body = _safe_json(response)
        raise ProgressClientError(
            body.get("message") or f"Progress API error: {response.status_code}",
            status_code=response.status_code,
            code=body.get("code"),
            retryable=is_retryable_status(response.status_code),
        )


def _safe_json(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
