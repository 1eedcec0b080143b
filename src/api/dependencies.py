# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users
- Get service instances

Example:
    @router.get("/enrollments/{enrollment_id}")
    async def get_enrollment(
        enrollment_id: int,
        db: DB,
        current_user: AuthenticatedUser,
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.domains.contract import ContractService
from src.domains.document import DocumentGate
from src.domains.enrollment import EnrollmentService
from src.domains.reenrollment import ReenrollmentService
from src.infrastructure.database.connection import get_session

logger = logging.getLogger(__name__)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session.

    Yields:
        AsyncSession bound to the application engine.
    """
    async with get_session() as session:
        yield session


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(request: Request) -> CurrentUser:
    """Require admin user.

    Raises:
        HTTPException: If not authenticated or not admin.
    """
    user = require_auth(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def require_student(request: Request) -> CurrentUser:
    """Require a student user.

    Raises:
        HTTPException: If not authenticated or not a student.
    """
    user = require_auth(request)
    if not user.is_student:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Student access required",
        )
    return user


# =========================================================================
# Service Dependencies
# =========================================================================


async def get_enrollment_service(
    db: AsyncSession = Depends(get_db),
) -> EnrollmentService:
    """Get enrollment service instance."""
    return EnrollmentService(db)


async def get_document_gate(
    db: AsyncSession = Depends(get_db),
) -> DocumentGate:
    """Get document gate instance."""
    return DocumentGate(db)


async def get_contract_service(
    db: AsyncSession = Depends(get_db),
) -> ContractService:
    """Get contract service instance."""
    return ContractService(db)


async def get_reenrollment_service(
    db: AsyncSession = Depends(get_db),
) -> ReenrollmentService:
    """Get reenrollment service instance."""
    return ReenrollmentService(db)


# Type aliases for cleaner endpoint signatures
DB = Annotated[AsyncSession, Depends(get_db)]
AuthenticatedUser = Annotated[CurrentUser, Depends(require_auth)]
AdminUser = Annotated[CurrentUser, Depends(require_admin)]
StudentUser = Annotated[CurrentUser, Depends(require_student)]
Enrollments = Annotated[EnrollmentService, Depends(get_enrollment_service)]
Documents = Annotated[DocumentGate, Depends(get_document_gate)]
Contracts = Annotated[ContractService, Depends(get_contract_service)]
Reenrollments = Annotated[ReenrollmentService, Depends(get_reenrollment_service)]
