"""Tests for the enrollment store and its endpoints."""

import asyncio
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import patch
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from coursemarket.enrollments.models import EnrollmentStatus
from coursemarket.enrollments.service import AlreadyEnrolledError


class TestEnrollmentService:
    """Tests for EnrollmentService."""

    @pytest.mark.asyncio
    async def test_create_writes_both_tables(
        self, services: SimpleNamespace, fake_session, user_id: UUID
    ) -> None:
        course_id = uuid4()

        enrollment = await services.enrollments.create(user_id, course_id, "pay_123")

        assert enrollment.status == EnrollmentStatus.ACTIVE.value
        assert enrollment.completed_at is None
        (main_row,) = fake_session.rows("enrollments")
        (lookup_row,) = fake_session.rows("enrollments_by_user")
        assert main_row["payment_id"] == "pay_123"
        assert lookup_row["course_id"] == course_id
        assert lookup_row["status"] == "active"

    @pytest.mark.asyncio
    async def test_create_twice_is_rejected(
        self, services: SimpleNamespace, fake_session, user_id: UUID
    ) -> None:
        course_id = uuid4()
        await services.enrollments.create(user_id, course_id)

        with pytest.raises(AlreadyEnrolledError) as exc_info:
            await services.enrollments.create(user_id, course_id, "pay_other")

        assert exc_info.value.code == "already_enrolled"
        (row,) = fake_session.rows("enrollments")
        assert row["payment_id"] is None

    @pytest.mark.asyncio
    async def test_find_one_missing(self, services: SimpleNamespace) -> None:
        assert await services.enrollments.find_one(uuid4(), uuid4()) is None

    @pytest.mark.asyncio
    async def test_upsert_status_creates_missing_enrollment(
        self, services: SimpleNamespace, user_id: UUID
    ) -> None:
        course_id = uuid4()

        enrollment, changed = await services.enrollments.upsert_status(
            user_id, course_id, EnrollmentStatus.COMPLETED
        )

        assert changed is True
        assert enrollment.is_completed
        stored = await services.enrollments.find_one(user_id, course_id)
        assert stored.is_completed
        assert stored.completed_at is not None

    @pytest.mark.asyncio
    async def test_upsert_status_never_reverts_completion(
        self, services: SimpleNamespace, user_id: UUID
    ) -> None:
        course_id = uuid4()
        await services.enrollments.create(user_id, course_id)
        completed, changed = await services.enrollments.upsert_status(
            user_id, course_id, EnrollmentStatus.COMPLETED
        )

        again, changed_again = await services.enrollments.upsert_status(
            user_id, course_id, EnrollmentStatus.COMPLETED
        )
        reverted, reverted_changed = await services.enrollments.upsert_status(
            user_id, course_id, EnrollmentStatus.ACTIVE
        )

        assert changed is True
        assert changed_again is False
        assert reverted_changed is False
        assert again.completed_at == completed.completed_at
        assert reverted.is_completed
        (lookup,) = await services.enrollments.list_for_user(user_id)
        assert lookup.status == "completed"

    @pytest.mark.asyncio
    async def test_concurrent_completions_apply_once(
        self, services: SimpleNamespace, fake_session, user_id: UUID
    ) -> None:
        course_id = uuid4()
        await services.enrollments.create(user_id, course_id)
        first_time = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
        second_time = datetime(2024, 5, 1, 10, 5, tzinfo=UTC)

        with patch(
            "coursemarket.enrollments.service.utc_now",
            side_effect=[first_time, second_time],
        ):
            results = await asyncio.gather(
                services.enrollments.upsert_status(
                    user_id, course_id, EnrollmentStatus.COMPLETED
                ),
                services.enrollments.upsert_status(
                    user_id, course_id, EnrollmentStatus.COMPLETED
                ),
            )

        assert [changed for _, changed in results] == [True, False]
        assert all(enrollment.is_completed for enrollment, _ in results)
        (main_row,) = fake_session.rows("enrollments")
        (lookup_row,) = fake_session.rows("enrollments_by_user")
        assert main_row["completed_at"] == first_time
        assert lookup_row["completed_at"] == first_time

    @pytest.mark.asyncio
    async def test_upsert_status_loses_race_to_create(
        self, services: SimpleNamespace, fake_session, user_id: UUID
    ) -> None:
        course_id = uuid4()

        results = await asyncio.gather(
            services.enrollments.upsert_status(
                user_id, course_id, EnrollmentStatus.COMPLETED
            ),
            services.enrollments.upsert_status(
                user_id, course_id, EnrollmentStatus.COMPLETED
            ),
        )

        assert sorted(changed for _, changed in results) == [False, True]
        (main_row,) = fake_session.rows("enrollments")
        assert main_row["status"] == "completed"

    @pytest.mark.asyncio
    async def test_list_for_user(self, services: SimpleNamespace, user_id: UUID) -> None:
        first, second = uuid4(), uuid4()
        await services.enrollments.create(user_id, first)
        await services.enrollments.create(user_id, second)
        await services.enrollments.create(uuid4(), first)

        enrollments = await services.enrollments.list_for_user(user_id)

        assert {e.course_id for e in enrollments} == {first, second}


class TestEnrollmentEndpoints:
    """HTTP tests for /enrollments."""

    def test_enroll(self, client: TestClient, make_course, user_id: UUID) -> None:
        course_id, _ = make_course()

        response = client.post(
            "/enrollments",
            json={"userId": str(user_id), "courseId": str(course_id), "paymentId": "p1"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "active"
        assert body["paymentId"] == "p1"
        assert body["completedAt"] is None

    def test_client_cannot_set_status(
        self, client: TestClient, make_course, user_id: UUID
    ) -> None:
        course_id, _ = make_course()

        response = client.post(
            "/enrollments",
            json={
                "userId": str(user_id),
                "courseId": str(course_id),
                "status": "completed",
            },
        )

        assert response.status_code == 201
        assert response.json()["status"] == "active"

    def test_duplicate_is_conflict(
        self, client: TestClient, make_course, user_id: UUID
    ) -> None:
        course_id, _ = make_course()
        payload = {"userId": str(user_id), "courseId": str(course_id)}
        client.post("/enrollments", json=payload)

        response = client.post("/enrollments", json=payload)

        assert response.status_code == 409
        assert response.json()["code"] == "already_enrolled"

    def test_unknown_course(self, client: TestClient, user_id: UUID) -> None:
        response = client.post(
            "/enrollments", json={"userId": str(user_id), "courseId": str(uuid4())}
        )

        assert response.status_code == 404
        assert response.json()["code"] == "course_not_found"

    def test_list_and_get(self, client: TestClient, make_course, user_id: UUID) -> None:
        course_id, _ = make_course()
        client.post(
            "/enrollments", json={"userId": str(user_id), "courseId": str(course_id)}
        )

        listing = client.get(f"/enrollments/user/{user_id}")
        single = client.get(f"/enrollments/{user_id}/{course_id}")
        missing = client.get(f"/enrollments/{user_id}/{uuid4()}")

        assert listing.status_code == 200
        assert listing.json()["total"] == 1
        assert listing.json()["items"][0]["courseId"] == str(course_id)
        assert single.status_code == 200
        assert single.json()["userId"] == str(user_id)
        assert missing.status_code == 404
        assert missing.json()["code"] == "enrollment_not_found"
