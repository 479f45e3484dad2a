"""Shared fixtures: an in-memory Cassandra session and the wired application."""

import asyncio
import os
import re
import tempfile
from collections.abc import Iterator
from types import SimpleNamespace
from typing import Any
from uuid import UUID, uuid4

import pytest


os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="coursemarket-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fastapi.testclient import TestClient  # noqa: E402

from coursemarket.certificates.service import CertificateService  # noqa: E402
from coursemarket.config import get_settings  # noqa: E402
from coursemarket.curriculum.service import CurriculumService  # noqa: E402
from coursemarket.enrollments.service import EnrollmentService  # noqa: E402
from coursemarket.main import app, build_services  # noqa: E402
from coursemarket.progress.service import ProgressService  # noqa: E402


KEYSPACE = "test_keyspace"

PRIMARY_KEYS: dict[str, tuple[str, ...]] = {
    "courses": ("id",),
    "chapters": ("id",),
    "lectures": ("id",),
    "course_chapters": ("course_id", "position", "chapter_id"),
    "chapter_lectures": ("chapter_id", "position", "lecture_id"),
    "enrollments": ("course_id", "user_id"),
    "enrollments_by_user": ("user_id", "course_id"),
    "lesson_progress": ("user_id", "course_id", "lesson_id"),
    "certificates": ("user_id", "course_id"),
}

SELECT_RE = re.compile(r"^SELECT \* FROM \w+\.(\w+) WHERE (.+)$")
INSERT_RE = re.compile(
    r"^INSERT INTO \w+\.(\w+) \((.+?)\) VALUES \((.+?)\)( IF NOT EXISTS)?$"
)
UPDATE_RE = re.compile(r"^UPDATE \w+\.(\w+) SET (.+?) WHERE (.+?)(?: IF (.+))?$")


# ==============================================================================
# In-memory Cassandra session
# ==============================================================================


class Row(SimpleNamespace):
    """Row where columns that were never written read as None."""

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return None


class FakeResult:
    """Minimal ResultSet: iterable, ``one()`` and ``was_applied``."""

    def __init__(self, rows: list[Row] | None = None, was_applied: bool = True):
        self._rows = rows or []
        self.was_applied = was_applied

    def one(self) -> Row | None:
        return self._rows[0] if self._rows else None

    def __iter__(self) -> Iterator[Row]:
        return iter(self._rows)


def _columns(clause: str, separator: str) -> list[str]:
    return [part.split("=")[0].strip() for part in clause.split(separator)]


class FakeSession:
    """Interprets the single-table CQL statements the services prepare.

    Supports ``SELECT *`` with equality filters, ``INSERT`` (optionally
    ``IF NOT EXISTS``) and ``UPDATE ... SET`` upserts keyed by primary key,
    optionally guarded by ``IF col = ?`` conditions.
    """

    def __init__(self) -> None:
        self.tables: dict[str, dict[tuple, dict[str, Any]]] = {
            name: {} for name in PRIMARY_KEYS
        }
        self.executed: list[tuple[str, list[Any]]] = []
        self.failures: dict[str, Exception] = {}

    def prepare(self, query: str) -> str:
        return " ".join(query.split())

    def fail_on(self, fragment: str, error: Exception) -> None:
        """Raise ``error`` for every statement containing ``fragment``."""
        self.failures[fragment] = error

    async def aexecute(
        self, statement: str, params: list[Any] | None = None
    ) -> FakeResult:
        # One event-loop yield per round trip
        await asyncio.sleep(0)
        params = list(params or [])
        self.executed.append((statement, params))
        for fragment, error in self.failures.items():
            if fragment in statement:
                raise error

        if match := SELECT_RE.match(statement):
            table, where = match.groups()
            filters = dict(zip(_columns(where, " AND "), params, strict=True))
            return self._select(table, filters)
        if match := INSERT_RE.match(statement):
            table, cols, _, if_not_exists = match.groups()
            columns = [c.strip() for c in cols.split(",")]
            values = dict(zip(columns, params, strict=True))
            return self._insert(table, values, only_if_absent=bool(if_not_exists))
        if match := UPDATE_RE.match(statement):
            table, assignments, where, condition = match.groups()
            set_cols = _columns(assignments, ",")
            where_cols = _columns(where, " AND ")
            if_cols = _columns(condition, " AND ") if condition else []
            row_cols = set_cols + where_cols
            values = dict(zip(row_cols, params[: len(row_cols)], strict=True))
            expected = dict(zip(if_cols, params[len(row_cols) :], strict=True))
            if expected:
                return self._update_if(table, values, expected)
            return self._insert(table, values, only_if_absent=False)
        msg = f"Unsupported statement: {statement}"
        raise NotImplementedError(msg)

    def _key(self, table: str, values: dict[str, Any]) -> tuple:
        return tuple(values[col] for col in PRIMARY_KEYS[table])

    def _select(self, table: str, filters: dict[str, Any]) -> FakeResult:
        rows = [
            Row(**data)
            for data in self.tables[table].values()
            if all(data.get(col) == value for col, value in filters.items())
        ]
        if rows and "position" in PRIMARY_KEYS[table]:
            rows.sort(key=lambda r: r.position)
        return FakeResult(rows)

    def _insert(
        self, table: str, values: dict[str, Any], only_if_absent: bool
    ) -> FakeResult:
        key = self._key(table, values)
        existing = self.tables[table].get(key)
        if only_if_absent and existing is not None:
            return FakeResult([Row(**existing)], was_applied=False)
        self.tables[table][key] = {**(existing or {}), **values}
        return FakeResult()

    def _update_if(
        self, table: str, values: dict[str, Any], expected: dict[str, Any]
    ) -> FakeResult:
        key = self._key(table, values)
        existing = self.tables[table].get(key)
        if existing is None or any(
            existing.get(col) != value for col, value in expected.items()
        ):
            return FakeResult(was_applied=False)
        existing.update(values)
        return FakeResult()

    # Test helpers -------------------------------------------------------------

    def rows(self, table: str) -> list[dict[str, Any]]:
        return list(self.tables[table].values())

    def put(self, table: str, **values: Any) -> None:
        self.tables[table][self._key(table, values)] = values


def seed_course(
    session: FakeSession,
    chapters: list[list[str | None]] | None = None,
    title: str = "Python do zero",
) -> tuple[UUID, list[UUID]]:
    """Store a course whose chapters hold lectures with the given durations.

    Returns the course id and the lecture ids in curriculum order.
    """
    chapters = chapters if chapters is not None else [["5", "10"]]
    course_id = uuid4()
    session.put("courses", id=course_id, title=title, price=None)

    lecture_ids: list[UUID] = []
    for chapter_position, durations in enumerate(chapters):
        chapter_id = uuid4()
        session.put("chapters", id=chapter_id, title=f"Chapter {chapter_position + 1}")
        session.put(
            "course_chapters",
            course_id=course_id,
            position=chapter_position,
            chapter_id=chapter_id,
        )
        for lecture_position, duration in enumerate(durations):
            lecture_id = uuid4()
            session.put(
                "lectures",
                id=lecture_id,
                title=f"Lecture {len(lecture_ids) + 1}",
                duration=duration,
                video_url=None,
                is_preview_free=False,
            )
            session.put(
                "chapter_lectures",
                chapter_id=chapter_id,
                position=lecture_position,
                lecture_id=lecture_id,
            )
            lecture_ids.append(lecture_id)

    return course_id, lecture_ids


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def fake_session() -> FakeSession:
    """In-memory Cassandra session."""
    return FakeSession()


@pytest.fixture
def services(fake_session: FakeSession) -> SimpleNamespace:
    """Services wired on top of the in-memory session."""
    curriculum = CurriculumService(session=fake_session, keyspace=KEYSPACE)
    enrollments = EnrollmentService(session=fake_session, keyspace=KEYSPACE)
    return SimpleNamespace(
        curriculum=curriculum,
        enrollments=enrollments,
        progress=ProgressService(
            session=fake_session,
            keyspace=KEYSPACE,
            enrollment_service=enrollments,
            curriculum_service=curriculum,
        ),
        certificates=CertificateService(
            session=fake_session,
            keyspace=KEYSPACE,
            enrollment_service=enrollments,
            base_url="https://certs.example.test",
        ),
    )


@pytest.fixture
def user_id() -> UUID:
    """Test user ID."""
    return uuid4()


@pytest.fixture
def client(fake_session: FakeSession) -> Iterator[TestClient]:
    """Test client with services bound to the in-memory session.

    The lifespan is not run, so no real Cassandra connection is attempted.
    """
    build_services(app, fake_session, get_settings())
    yield TestClient(app, raise_server_exceptions=False)
    for name in (
        "cassandra_session",
        "curriculum_service",
        "enrollment_service",
        "progress_service",
        "certificate_service",
    ):
        setattr(app.state, name, None)


@pytest.fixture
def make_course(fake_session: FakeSession):
    """Factory storing a course; see ``seed_course``."""

    def factory(
        chapters: list[list[str | None]] | None = None, title: str = "Python do zero"
    ) -> tuple[UUID, list[UUID]]:
        return seed_course(fake_session, chapters=chapters, title=title)

    return factory
