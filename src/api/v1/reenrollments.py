# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reenrollment API endpoints.

This module provides endpoints for the termly reenrollment cycle:
- POST /process-all - Move every active enrollment into reenrollment
- GET /contract-preview/{enrollment_id} - Render the contract to accept
- POST /accept/{enrollment_id} - Accept a reenrollment

The batch endpoint re-validates the administrator's password and is
rate limited. Preview and acceptance are for students only.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from src.api.dependencies import AdminUser, Reenrollments, StudentUser
from src.api.middleware.rate_limit import RATE_LIMIT_REENROLLMENT_BATCH, limiter
from src.models.reenrollment import (
    ContractPreviewResponse,
    ReenrollmentAcceptResponse,
    ReenrollmentBatchRequest,
    ReenrollmentBatchResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/process-all",
    response_model=ReenrollmentBatchResponse,
    summary="Process global reenrollment",
    description=(
        "Move every active enrollment into reenrollment for the given term. "
        "All rows change in one transaction or none do."
    ),
)
@limiter.limit(RATE_LIMIT_REENROLLMENT_BATCH)
async def process_all(
    request: Request,
    data: ReenrollmentBatchRequest,
    current_user: AdminUser,
    service: Reenrollments,
) -> ReenrollmentBatchResponse:
    """Run the reenrollment batch.

    Raises:
        HTTPException: 401 if the administrator password is wrong.
    """
    valid = await service.validate_admin_password(current_user.id, data.admin_password)
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid administrator password",
        )

    return await service.process_global_reenrollment(
        semester=data.semester,
        year=data.year,
        admin_user_id=current_user.id,
    )


@router.get(
    "/contract-preview/{enrollment_id}",
    response_model=ContractPreviewResponse,
    summary="Preview reenrollment contract",
)
async def contract_preview(
    enrollment_id: int,
    current_user: StudentUser,
    service: Reenrollments,
) -> ContractPreviewResponse:
    """Render the reenrollment contract for the student's enrollment."""
    return await service.get_reenrollment_contract_preview(enrollment_id, current_user.id)


@router.post(
    "/accept/{enrollment_id}",
    response_model=ReenrollmentAcceptResponse,
    summary="Accept reenrollment",
    description="Reactivate the enrollment for the next semester and record the accepted contract.",
)
async def accept(
    enrollment_id: int,
    current_user: StudentUser,
    service: Reenrollments,
) -> ReenrollmentAcceptResponse:
    """Accept a reenrollment."""
    logger.info("Reenrollment acceptance: enrollment=%s by user %s", enrollment_id, current_user.id)
    return await service.accept_reenrollment(enrollment_id, current_user.id)
