# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import Generator
from typing import Any

import pytest

from src.core.config import clear_settings_cache
from src.infrastructure.events import reset_event_bus


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "development",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
        "JWT_SECRET_KEY": "test-secret-key-for-testing-only",
        "JWT_ALGORITHM": "HS256",
    }


@pytest.fixture(autouse=True)
def fresh_event_bus() -> Generator[None, None, None]:
    """Give every test its own event bus and settings cache."""
    reset_event_bus()
    clear_settings_cache()
    yield
    reset_event_bus()
    clear_settings_cache()


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (uses a real database)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_student_data() -> dict[str, Any]:
    """Provide sample student data for testing."""
    return {
        "name": "Maria Souza",
        "cpf": "123.456.789-00",
        "email": "maria@example.com",
        "street": "Rua das Flores",
        "number": "100",
        "district": "Centro",
        "city": "Curitiba",
        "state": "PR",
        "zip_code": "80000-000",
    }


@pytest.fixture
def sample_template_content() -> str:
    """Provide a contract template body using every supported placeholder."""
    return (
        "<h1>Contrato de Matrícula</h1>"
        "<p>Aluno: {{studentName}} (CPF {{studentCpf}}), matrícula {{studentId}}</p>"
        "<p>Endereço: {{studentAddress}}</p>"
        "<p>Curso: {{courseName}} ({{courseId}}), duração {{duration}}</p>"
        "<p>Semestre {{semester}}/{{year}}</p>"
        "<p>{{institutionName}}, {{currentDate}}</p>"
    )
