# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the HTTP API.

Requests go through the full application (auth middleware, rate
limiter, exception handlers) against the test database.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.api.app import create_app
from src.api.dependencies import get_db
from src.api.middleware.rate_limit import limiter
from src.core.config import get_settings
from src.domains.auth.jwt import JWTManager

pytestmark = pytest.mark.integration

ADMIN_PASSWORD = "admin-secret"


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create an API client bound to the test database."""
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    limiter.reset()


@pytest.fixture
def tokens(seed) -> dict[str, dict[str, str]]:
    """Create bearer headers for the seeded accounts."""
    manager = JWTManager(get_settings().jwt)

    def bearer(user, role, student_id=None):
        token = manager.create_access_token(user.id, role, student_id=student_id)
        return {"Authorization": f"Bearer {token}"}

    return {
        "admin": bearer(seed.admin, "admin"),
        "maria": bearer(seed.maria_user, "student", seed.maria.id),
        "joao": bearer(seed.joao_user, "student", seed.joao.id),
    }


async def _active_enrollment(client, tokens, student_id, course_id):
    response = await client.post(
        "/api/v1/enrollments",
        json={"student_id": student_id, "course_id": course_id},
        headers=tokens["admin"],
    )
    assert response.status_code == 201
    enrollment_id = response.json()["id"]

    response = await client.post(
        f"/api/v1/enrollments/{enrollment_id}/activate",
        headers=tokens["admin"],
    )
    assert response.status_code == 200
    assert response.json()["status"] == "active"
    return enrollment_id


class TestAuthentication:
    """Tests for authentication and role checks."""

    @pytest.mark.asyncio
    async def test_health_is_public(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert "database" in response.json()

    @pytest.mark.asyncio
    async def test_missing_token(self, client, seed):
        response = await client.get(f"/api/v1/enrollments/student/{seed.maria.id}")

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_student_cannot_create_enrollment(self, client, seed, tokens):
        response = await client.post(
            "/api/v1/enrollments",
            json={"student_id": seed.maria.id, "course_id": seed.law.id},
            headers=tokens["maria"],
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_student_reads_only_own_enrollments(self, client, seed, tokens):
        own = await client.get(
            f"/api/v1/enrollments/student/{seed.maria.id}",
            headers=tokens["maria"],
        )
        other = await client.get(
            f"/api/v1/enrollments/student/{seed.joao.id}",
            headers=tokens["maria"],
        )

        assert own.status_code == 200
        assert other.status_code == 403


class TestEnrollmentEndpoints:
    """Tests for the enrollment endpoints."""

    @pytest.mark.asyncio
    async def test_duplicate_live_enrollment(self, client, seed, tokens):
        await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)

        response = await client.post(
            "/api/v1/enrollments",
            json={"student_id": seed.maria.id, "course_id": seed.nursing.id},
            headers=tokens["admin"],
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "live_enrollment_exists"
        assert body["details"]["course_name"] == "Direito"

    @pytest.mark.asyncio
    async def test_unknown_course(self, client, seed, tokens):
        response = await client.post(
            "/api/v1/enrollments",
            json={"student_id": seed.maria.id, "course_id": 9999},
            headers=tokens["admin"],
        )

        assert response.status_code == 404
        assert response.json()["code"] == "course_not_found"

    @pytest.mark.asyncio
    async def test_status_endpoint_rejects_reenrollment(self, client, seed, tokens):
        enrollment_id = await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)

        response = await client.patch(
            f"/api/v1/enrollments/{enrollment_id}/status",
            json={"status": "reenrollment"},
            headers=tokens["admin"],
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_cancel_twice(self, client, seed, tokens):
        enrollment_id = await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)

        first = await client.post(
            f"/api/v1/enrollments/{enrollment_id}/cancel",
            headers=tokens["admin"],
        )
        second = await client.post(
            f"/api/v1/enrollments/{enrollment_id}/cancel",
            headers=tokens["admin"],
        )

        assert first.status_code == 200
        assert first.json()["status"] == "cancelled"
        assert second.status_code == 409


class TestReenrollmentEndpoints:
    """Tests for the reenrollment cycle over HTTP."""

    @pytest.mark.asyncio
    async def test_full_cycle(self, client, seed, tokens):
        enrollment_id = await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)
        response = await client.patch(
            f"/api/v1/enrollments/{enrollment_id}/semester",
            json={"current_semester": 2},
            headers=tokens["admin"],
        )
        assert response.status_code == 200

        response = await client.post(
            "/api/v1/reenrollments/process-all",
            json={"semester": 2, "year": 2025, "admin_password": ADMIN_PASSWORD},
            headers=tokens["admin"],
        )
        assert response.status_code == 200
        assert response.json()["affected_ids"] == [enrollment_id]

        response = await client.get(
            f"/api/v1/reenrollments/contract-preview/{enrollment_id}",
            headers=tokens["maria"],
        )
        assert response.status_code == 200
        assert response.json()["semester"] == 3
        assert "Maria Souza" in response.json()["contract_html"]

        response = await client.post(
            f"/api/v1/reenrollments/accept/{enrollment_id}",
            headers=tokens["maria"],
        )
        assert response.status_code == 200
        body = response.json()
        assert body["enrollment"]["status"] == "active"
        assert body["enrollment"]["current_semester"] == 3
        assert body["contract"]["semester"] == 3
        assert body["contract"]["is_accepted"] is True

        response = await client.get("/api/v1/contracts/me", headers=tokens["maria"])
        assert response.json()["total"] == 1

    @pytest.mark.asyncio
    async def test_wrong_admin_password(self, client, seed, tokens):
        enrollment_id = await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)

        response = await client.post(
            "/api/v1/reenrollments/process-all",
            json={"semester": 1, "year": 2025, "admin_password": "not-the-password"},
            headers=tokens["admin"],
        )

        assert response.status_code == 401
        response = await client.get(
            f"/api/v1/enrollments/{enrollment_id}",
            headers=tokens["admin"],
        )
        assert response.json()["status"] == "active"

    @pytest.mark.asyncio
    async def test_batch_requires_admin(self, client, seed, tokens):
        response = await client.post(
            "/api/v1/reenrollments/process-all",
            json={"semester": 1, "year": 2025, "admin_password": ADMIN_PASSWORD},
            headers=tokens["maria"],
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_same_term_twice(self, client, seed, tokens):
        await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)
        payload = {"semester": 1, "year": 2025, "admin_password": ADMIN_PASSWORD}

        first = await client.post(
            "/api/v1/reenrollments/process-all", json=payload, headers=tokens["admin"]
        )
        await _active_enrollment(client, tokens, seed.joao.id, seed.nursing.id)
        second = await client.post(
            "/api/v1/reenrollments/process-all", json=payload, headers=tokens["admin"]
        )

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["code"] == "reenrollment_batch_exists"

    @pytest.mark.asyncio
    async def test_batch_is_rate_limited(self, client, seed, tokens):
        payload = {"semester": 1, "year": 2025, "admin_password": "not-the-password"}

        statuses = [
            (
                await client.post(
                    "/api/v1/reenrollments/process-all", json=payload, headers=tokens["admin"]
                )
            ).status_code
            for _ in range(6)
        ]

        assert statuses[:5] == [401] * 5
        assert statuses[5] == 429

    @pytest.mark.asyncio
    async def test_other_student_cannot_accept(self, client, seed, tokens):
        enrollment_id = await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)
        await client.post(
            "/api/v1/reenrollments/process-all",
            json={"semester": 1, "year": 2025, "admin_password": ADMIN_PASSWORD},
            headers=tokens["admin"],
        )

        response = await client.post(
            f"/api/v1/reenrollments/accept/{enrollment_id}",
            headers=tokens["joao"],
        )

        assert response.status_code == 403
        assert response.json()["code"] == "enrollment_not_owned"

    @pytest.mark.asyncio
    async def test_admin_cannot_accept(self, client, seed, tokens):
        response = await client.post("/api/v1/reenrollments/accept/1", headers=tokens["admin"])

        assert response.status_code == 403


class TestStudentViews:
    """Tests for the student-facing pending and period views."""

    @pytest.mark.asyncio
    async def test_pending_enrollment_and_contracts(self, client, seed, tokens):
        response = await client.get(
            f"/api/v1/enrollments/students/{seed.maria.id}/pending",
            headers=tokens["maria"],
        )
        assert response.status_code == 200
        assert response.json() is None

        response = await client.post(
            "/api/v1/enrollments",
            json={"student_id": seed.maria.id, "course_id": seed.law.id},
            headers=tokens["admin"],
        )
        enrollment_id = response.json()["id"]

        response = await client.get(
            f"/api/v1/enrollments/students/{seed.maria.id}/pending",
            headers=tokens["maria"],
        )
        assert response.json()["id"] == enrollment_id
        assert response.json()["status"] == "pending"

        response = await client.get(
            f"/api/v1/enrollments/students/{seed.maria.id}/pending",
            headers=tokens["joao"],
        )
        assert response.status_code == 403

        response = await client.get("/api/v1/contracts/me/pending", headers=tokens["maria"])
        assert response.status_code == 200
        assert response.json() == {"has_pending": False, "count": 0}

    @pytest.mark.asyncio
    async def test_contracts_by_period(self, client, seed, tokens):
        enrollment_id = await _active_enrollment(client, tokens, seed.maria.id, seed.law.id)
        await client.post(
            "/api/v1/reenrollments/process-all",
            json={"semester": 1, "year": 2025, "admin_password": ADMIN_PASSWORD},
            headers=tokens["admin"],
        )
        response = await client.post(
            f"/api/v1/reenrollments/accept/{enrollment_id}",
            headers=tokens["maria"],
        )
        contract = response.json()["contract"]

        response = await client.get(
            "/api/v1/contracts/me/period",
            params={"semester": contract["semester"], "year": contract["year"]},
            headers=tokens["maria"],
        )
        assert response.status_code == 200
        assert response.json()["total"] == 1

        response = await client.get(
            "/api/v1/contracts/me/period",
            params={"semester": contract["semester"], "year": 1999},
            headers=tokens["maria"],
        )
        assert response.json()["total"] == 0

        response = await client.get(
            "/api/v1/contracts/me/period",
            params={"semester": 0, "year": 2025},
            headers=tokens["maria"],
        )
        assert response.status_code == 422
