"""HTTP tests for the progress endpoints."""

from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def enrolled(client: TestClient, make_course, user_id: UUID):
    """Enrolled user in a two-lesson course (5 and 10 minutes)."""
    course_id, lessons = make_course([["5", "10"]])
    response = client.post(
        "/enrollments", json={"userId": str(user_id), "courseId": str(course_id)}
    )
    assert response.status_code == 201
    return course_id, lessons


def watch(
    client: TestClient,
    user_id: UUID,
    course_id: UUID,
    lesson_id: UUID | str,
    progress: object = 0,
    completed: object = False,
):
    return client.post(
        "/progress",
        json={
            "userId": str(user_id),
            "courseId": str(course_id),
            "lessonId": str(lesson_id),
            "progress": progress,
            "completed": completed,
        },
    )


class TestRecordProgressEndpoint:
    """Tests for POST /progress."""

    def test_records_and_completes_course(
        self, client: TestClient, enrolled, user_id: UUID
    ) -> None:
        course_id, (lesson1, lesson2) = enrolled

        first = watch(client, user_id, course_id, lesson1, 300, True)
        assert first.status_code == 200
        body = first.json()
        assert body["courseProgress"] == {
            "watchedDuration": 300.0,
            "percentageCompleted": 50.0,
            "totalDuration": 900.0,
            "status": "started",
            "completedLessons": 1,
            "totalLessons": 2,
        }
        assert body["isCourseCompleted"] is False
        assert body["progress"][0]["lessonId"] == str(lesson1)
        assert body["progress"][0]["completed"] is True

        second = watch(client, user_id, course_id, lesson2, 600, True)
        body = second.json()
        assert body["courseProgress"]["percentageCompleted"] == 100.0
        assert body["courseProgress"]["status"] == "completed"
        assert body["isCourseCompleted"] is True

        enrollment = client.get(f"/enrollments/{user_id}/{course_id}").json()
        assert enrollment["status"] == "completed"
        assert enrollment["completedAt"] is not None

    @pytest.mark.parametrize(
        ("raw_progress", "raw_completed", "progress", "completed"),
        [
            ("120", "true", 120.0, True),
            (-5, "0", 0.0, False),
            ("abc", None, 0.0, False),
            (None, "yes", 0.0, True),
        ],
    )
    def test_coerces_progress_and_flag(
        self,
        client: TestClient,
        enrolled,
        user_id: UUID,
        raw_progress: object,
        raw_completed: object,
        progress: float,
        completed: bool,
    ) -> None:
        course_id, (lesson1, _) = enrolled

        response = watch(client, user_id, course_id, lesson1, raw_progress, raw_completed)

        assert response.status_code == 200
        (row,) = response.json()["progress"]
        assert row["progress"] == progress
        assert row["completed"] is completed

    @pytest.mark.parametrize("raw_progress", [10**400, -(10**400)])
    def test_oversized_progress_becomes_zero(
        self, client: TestClient, enrolled, user_id: UUID, raw_progress: int
    ) -> None:
        course_id, (lesson1, _) = enrolled

        response = watch(client, user_id, course_id, lesson1, raw_progress, True)

        assert response.status_code == 200
        (row,) = response.json()["progress"]
        assert row["progress"] == 0.0
        assert row["completed"] is True

    def test_lesson_not_in_course(
        self, client: TestClient, enrolled, user_id: UUID, fake_session
    ) -> None:
        course_id, _ = enrolled

        response = watch(client, user_id, course_id, uuid4(), 10, True)

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "lesson_not_in_course"
        assert body["error"] is True
        assert "lesson" in body["message"].lower()
        assert fake_session.rows("lesson_progress") == []

    def test_not_enrolled(self, client: TestClient, make_course, user_id: UUID) -> None:
        course_id, (lesson1, _) = make_course([["5", "10"]])

        response = watch(client, user_id, course_id, lesson1, 10)

        assert response.status_code == 403
        assert response.json()["code"] == "not_enrolled"

    def test_unknown_course(self, client: TestClient, user_id: UUID) -> None:
        response = watch(client, user_id, uuid4(), uuid4(), 10)

        assert response.status_code == 404
        assert response.json()["code"] == "course_not_found"

    def test_malformed_lesson_id(
        self, client: TestClient, enrolled, user_id: UUID
    ) -> None:
        course_id, _ = enrolled

        response = watch(client, user_id, course_id, "ghost-id", 10)

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "validation_error"
        assert any("lessonId" in d["field"] for d in body["details"])

    def test_missing_ids(self, client: TestClient) -> None:
        response = client.post("/progress", json={"progress": 10})

        assert response.status_code == 400
        fields = {d["field"] for d in response.json()["details"]}
        assert {"body.userId", "body.courseId", "body.lessonId"} <= fields


class TestGetProgressEndpoint:
    """Tests for GET /progress/{userId}/{courseId}."""

    def test_returns_progress(self, client: TestClient, enrolled, user_id: UUID) -> None:
        course_id, (lesson1, _) = enrolled
        watch(client, user_id, course_id, lesson1, 42, False)

        response = client.get(f"/progress/{user_id}/{course_id}")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"progress", "courseProgress"}
        assert body["courseProgress"]["watchedDuration"] == 42.0
        assert body["courseProgress"]["percentageCompleted"] == 0.0

    def test_not_enrolled(self, client: TestClient, make_course, user_id: UUID) -> None:
        course_id, _ = make_course()

        response = client.get(f"/progress/{user_id}/{course_id}")

        assert response.status_code == 403

    def test_invalid_ids(self, client: TestClient) -> None:
        response = client.get("/progress/not-a-uuid/also-not")

        assert response.status_code == 400

    def test_invalid_curriculum(
        self, client: TestClient, enrolled, user_id: UUID, fake_session
    ) -> None:
        course_id, _ = enrolled
        fake_session.tables["chapters"].clear()

        response = client.get(f"/progress/{user_id}/{course_id}")

        assert response.status_code == 404
        assert response.json()["code"] == "invalid_curriculum"

    def test_store_failure_is_generic_500(
        self, client: TestClient, enrolled, user_id: UUID, fake_session
    ) -> None:
        course_id, _ = enrolled
        fake_session.fail_on("lesson_progress", RuntimeError("connection refused"))

        response = client.get(
            f"/progress/{user_id}/{course_id}", headers={"X-Request-ID": "req-123"}
        )

        assert response.status_code == 500
        body = response.json()
        assert body["code"] == "internal_error"
        assert "connection refused" not in body["message"]
        assert body["request_id"] == "req-123"
