# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for integration tests.

Tests run against TEST_DATABASE_URL, an in-memory SQLite database by
default. Every test gets a freshly created schema and a small seed:
one administrator, two students with accounts, two courses and an
active contract template.
"""

import os
from collections.abc import AsyncGenerator
from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.models import (
    Base,
    ContractTemplate,
    Course,
    Student,
    User,
)

ADMIN_PASSWORD = "admin-secret"
STUDENT_PASSWORD = "student-secret"


@pytest.fixture(scope="session")
def database_url() -> str:
    """Get database URL for tests."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture
async def db_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine with a fresh schema."""
    if database_url.startswith("sqlite"):
        engine = create_async_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    else:
        engine = create_async_engine(database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a sessionmaker configured like the application's."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for a single unit of work."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def seed(session_factory: async_sessionmaker[AsyncSession]) -> SimpleNamespace:
    """Insert the users, students, courses and template every test starts from."""
    hasher = PasswordHasher(rounds=4)

    async with session_factory() as session:
        maria = Student(
            name="Maria Souza",
            cpf="123.456.789-00",
            email="maria@example.com",
            street="Rua das Flores",
            number="100",
            district="Centro",
            city="Curitiba",
            state="PR",
            zip_code="80000-000",
        )
        joao = Student(name="João Lima", cpf="987.654.321-00")
        law = Course(name="Direito", duration_semesters=10)
        nursing = Course(name="Enfermagem", duration_semesters=8)
        template = ContractTemplate(
            name="Contrato padrão",
            content=(
                "<h1>Contrato</h1>"
                "<p>{{studentName}} - {{courseName}} - semestre {{semester}}/{{year}}</p>"
                "<p>{{institutionName}}</p>"
            ),
            is_default=True,
        )
        session.add_all([maria, joao, law, nursing, template])
        await session.flush()

        admin = User(
            name="Secretaria",
            login="admin",
            role="admin",
            password_hash=hasher.hash(ADMIN_PASSWORD),
        )
        maria_user = User(
            name="Maria Souza",
            login="maria",
            role="student",
            password_hash=hasher.hash(STUDENT_PASSWORD),
            student_id=maria.id,
        )
        joao_user = User(
            name="João Lima",
            login="joao",
            role="student",
            password_hash=hasher.hash(STUDENT_PASSWORD),
            student_id=joao.id,
        )
        session.add_all([admin, maria_user, joao_user])
        await session.commit()

        return SimpleNamespace(
            admin=admin,
            maria=maria,
            maria_user=maria_user,
            joao=joao,
            joao_user=joao_user,
            law=law,
            nursing=nursing,
            template=template,
        )


