# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the authentication middleware and role dependencies.

Tests the middleware components in isolation from database.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from pydantic import SecretStr

from src.api.dependencies import AdminUser, StudentUser
from src.api.middleware.auth import AuthMiddleware, CurrentUser, get_current_user
from src.domains.auth.jwt import JWTManager


@pytest.fixture
def jwt_settings() -> MagicMock:
    """Create mock JWT settings."""
    settings = MagicMock()
    settings.secret_key = SecretStr("test-secret-key-for-jwt-testing")
    settings.algorithm = "HS256"
    settings.access_token_expire_minutes = 30
    return settings


@pytest.fixture
def jwt_manager(jwt_settings: MagicMock) -> JWTManager:
    """Create JWT manager with test settings."""
    return JWTManager(jwt_settings)


def _whoami_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(AuthMiddleware)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/api/v1/test")
    async def test_endpoint(request: Request) -> dict:
        user = get_current_user(request)
        return {"user_id": user.id if user else None, "role": user.role if user else None}

    @app.get("/api/v1/admin-only")
    async def admin_only(current_user: AdminUser) -> dict:
        return {"user_id": current_user.id}

    @app.get("/api/v1/student-only")
    async def student_only(current_user: StudentUser) -> dict:
        return {"student_id": current_user.student_id}

    return app


class TestAuthMiddleware:
    """Tests for AuthMiddleware."""

    def test_public_path_bypasses_auth(self) -> None:
        """Test that public paths don't require authentication."""
        client = TestClient(_whoami_app())
        response = client.get("/health")

        assert response.status_code == 200

    @patch("src.api.middleware.auth.get_settings")
    def test_valid_token_sets_user(
        self,
        mock_settings: MagicMock,
        jwt_settings: MagicMock,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that valid token sets request.state.user."""
        mock_settings.return_value.jwt = jwt_settings

        token = jwt_manager.create_access_token(user_id=7, role="student", student_id=3)

        client = TestClient(_whoami_app())
        response = client.get(
            "/api/v1/test",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200
        assert response.json() == {"user_id": 7, "role": "student"}

    @patch("src.api.middleware.auth.get_settings")
    def test_no_token_sets_user_none(
        self,
        mock_settings: MagicMock,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that missing token sets request.state.user to None."""
        mock_settings.return_value.jwt = jwt_settings

        client = TestClient(_whoami_app())
        response = client.get("/api/v1/test")

        assert response.status_code == 200
        assert response.json()["user_id"] is None

    @patch("src.api.middleware.auth.get_settings")
    def test_invalid_token_sets_user_none(
        self,
        mock_settings: MagicMock,
        jwt_settings: MagicMock,
    ) -> None:
        """Test that invalid token sets request.state.user to None."""
        mock_settings.return_value.jwt = jwt_settings

        client = TestClient(_whoami_app())
        response = client.get(
            "/api/v1/test",
            headers={"Authorization": "Bearer invalid-token"},
        )

        assert response.status_code == 200
        assert response.json()["user_id"] is None

    @patch("src.api.middleware.auth.get_settings")
    def test_expired_token_sets_user_none(
        self,
        mock_settings: MagicMock,
        jwt_settings: MagicMock,
        jwt_manager: JWTManager,
    ) -> None:
        """Test that an expired token is treated as anonymous."""
        mock_settings.return_value.jwt = jwt_settings
        token = jwt_manager.create_access_token(
            user_id=7,
            role="admin",
            expires_delta=timedelta(seconds=-1),
        )

        client = TestClient(_whoami_app())
        response = client.get(
            "/api/v1/test",
            headers={"Authorization": f"Bearer {token}"},
        )

        assert response.json()["user_id"] is None


class TestRoleDependencies:
    """Tests for the admin and student guards."""

    @patch("src.api.middleware.auth.get_settings")
    def test_admin_guard(
        self,
        mock_settings: MagicMock,
        jwt_settings: MagicMock,
        jwt_manager: JWTManager,
    ) -> None:
        mock_settings.return_value.jwt = jwt_settings
        admin = jwt_manager.create_access_token(user_id=1, role="admin")
        student = jwt_manager.create_access_token(user_id=2, role="student", student_id=3)

        client = TestClient(_whoami_app())

        assert client.get("/api/v1/admin-only").status_code == 401
        assert (
            client.get(
                "/api/v1/admin-only", headers={"Authorization": f"Bearer {student}"}
            ).status_code
            == 403
        )
        response = client.get("/api/v1/admin-only", headers={"Authorization": f"Bearer {admin}"})
        assert response.status_code == 200
        assert response.json() == {"user_id": 1}

    @patch("src.api.middleware.auth.get_settings")
    def test_student_guard(
        self,
        mock_settings: MagicMock,
        jwt_settings: MagicMock,
        jwt_manager: JWTManager,
    ) -> None:
        mock_settings.return_value.jwt = jwt_settings
        teacher = jwt_manager.create_access_token(user_id=4, role="teacher")
        student = jwt_manager.create_access_token(user_id=2, role="student", student_id=3)

        client = TestClient(_whoami_app())

        assert (
            client.get(
                "/api/v1/student-only", headers={"Authorization": f"Bearer {teacher}"}
            ).status_code
            == 403
        )
        response = client.get(
            "/api/v1/student-only", headers={"Authorization": f"Bearer {student}"}
        )
        assert response.json() == {"student_id": 3}


class TestCurrentUser:
    """Tests for CurrentUser class."""

    @pytest.mark.parametrize(
        "role,is_admin,is_teacher,is_student",
        [
            ("admin", True, False, False),
            ("teacher", False, True, False),
            ("student", False, False, True),
        ],
    )
    def test_role_properties(
        self,
        jwt_manager: JWTManager,
        role: str,
        is_admin: bool,
        is_teacher: bool,
        is_student: bool,
    ) -> None:
        """Test role helper properties."""
        token = jwt_manager.create_access_token(user_id=9, role=role)
        user = CurrentUser(jwt_manager.decode_token(token))

        assert user.id == 9
        assert user.is_admin is is_admin
        assert user.is_teacher is is_teacher
        assert user.is_student is is_student

    def test_student_id_claim(self, jwt_manager: JWTManager) -> None:
        token = jwt_manager.create_access_token(user_id=2, role="student", student_id=3)
        user = CurrentUser(jwt_manager.decode_token(token))

        assert user.student_id == 3
