# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API endpoints.

This module provides endpoints for the enrollment lifecycle:
- POST / - Enroll a student in a course
- GET /{enrollment_id} - Get enrollment details
- GET /student/{student_id} - List a student's enrollments
- GET /course/{course_id} - List a course's enrollments
- GET /students/{student_id}/can-enroll - Check for a live enrollment
- GET /students/{student_id}/pending - Enrollment awaiting the student
- GET /students/{student_id}/documents - Required document report
- POST /{enrollment_id}/activate - Activate a pending enrollment
- PATCH /{enrollment_id}/status - Generic status change
- PATCH /{enrollment_id}/semester - Correct the semester counter
- POST /{enrollment_id}/cancel - Cancel an enrollment
- DELETE /{enrollment_id} - Soft delete an enrollment

Writes require admin access. Students may read their own enrollments.
Domain errors are translated by the application exception handler.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status

from src.api.dependencies import (
    AdminUser,
    AuthenticatedUser,
    Documents,
    Enrollments,
)
from src.api.middleware.auth import CurrentUser
from src.models.common import MessageResponse
from src.models.document import PendingDocumentsResponse
from src.models.enrollment import (
    CanEnrollResponse,
    EnrollmentCreateRequest,
    EnrollmentDetailResponse,
    EnrollmentListResponse,
    EnrollmentResponse,
    EnrollmentSemesterUpdateRequest,
    EnrollmentStatusUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

StatusFilter = Annotated[str | None, Query(alias="status", description="Filter by enrollment status")]


def _check_student_access(current_user: CurrentUser, student_id: int) -> None:
    """Allow admins, and students acting on their own record."""
    if current_user.is_admin:
        return
    if current_user.is_student and current_user.student_id == student_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Access denied to this student",
    )


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create enrollment",
    description="Enroll a student in a course. The enrollment starts pending at semester 0.",
)
async def create_enrollment(
    data: EnrollmentCreateRequest,
    current_user: AdminUser,
    service: Enrollments,
) -> EnrollmentResponse:
    """Create a new enrollment."""
    logger.info(
        "Creating enrollment: student=%s, course=%s by %s",
        data.student_id,
        data.course_id,
        current_user.id,
    )
    enrollment = await service.create(
        student_id=data.student_id,
        course_id=data.course_id,
        enrollment_date=data.enrollment_date,
        actor_id=current_user.id,
    )
    return EnrollmentResponse.model_validate(enrollment)


@router.get(
    "/student/{student_id}",
    response_model=EnrollmentListResponse,
    summary="List student enrollments",
)
async def list_student_enrollments(
    student_id: int,
    current_user: AuthenticatedUser,
    service: Enrollments,
    status_filter: StatusFilter = None,
) -> EnrollmentListResponse:
    """List a student's enrollments, newest first."""
    _check_student_access(current_user, student_id)
    enrollments = await service.get_by_student(student_id, status=status_filter)
    return EnrollmentListResponse(
        items=[EnrollmentDetailResponse.model_validate(e) for e in enrollments],
        total=len(enrollments),
    )


@router.get(
    "/course/{course_id}",
    response_model=EnrollmentListResponse,
    summary="List course enrollments",
)
async def list_course_enrollments(
    course_id: int,
    current_user: AdminUser,
    service: Enrollments,
    status_filter: StatusFilter = None,
) -> EnrollmentListResponse:
    """List a course's enrollments, newest first."""
    enrollments = await service.get_by_course(course_id, status=status_filter)
    return EnrollmentListResponse(
        items=[EnrollmentDetailResponse.model_validate(e) for e in enrollments],
        total=len(enrollments),
    )


@router.get(
    "/students/{student_id}/can-enroll",
    response_model=CanEnrollResponse,
    summary="Check enrollment eligibility",
    description="True when the student exists and holds no pending, active or reenrollment enrollment.",
)
async def can_enroll(
    student_id: int,
    current_user: AuthenticatedUser,
    service: Enrollments,
) -> CanEnrollResponse:
    """Check whether a new enrollment may be created for the student."""
    _check_student_access(current_user, student_id)
    return CanEnrollResponse(
        student_id=student_id,
        can_enroll=await service.can_enroll(student_id),
    )


@router.get(
    "/students/{student_id}/pending",
    response_model=EnrollmentDetailResponse | None,
    summary="Enrollment awaiting the student",
    description="Most recent pending or reenrollment enrollment, or null.",
)
async def get_pending_enrollment(
    student_id: int,
    current_user: AuthenticatedUser,
    service: Enrollments,
) -> EnrollmentDetailResponse | None:
    """Get the enrollment the student still has to act on."""
    _check_student_access(current_user, student_id)
    enrollment = await service.get_pending_by_student(student_id)
    if enrollment is None:
        return None
    return EnrollmentDetailResponse.model_validate(enrollment)


@router.get(
    "/students/{student_id}/documents",
    response_model=PendingDocumentsResponse,
    summary="Required document report",
)
async def get_pending_documents(
    student_id: int,
    current_user: AuthenticatedUser,
    gate: Documents,
) -> PendingDocumentsResponse:
    """Report the state of every mandatory document for the student."""
    _check_student_access(current_user, student_id)
    return await gate.get_pending_documents(student_id)


@router.get(
    "/{enrollment_id}",
    response_model=EnrollmentDetailResponse,
    summary="Get enrollment",
)
async def get_enrollment(
    enrollment_id: int,
    current_user: AuthenticatedUser,
    service: Enrollments,
) -> EnrollmentDetailResponse:
    """Get an enrollment with its student and course."""
    enrollment = await service.get_by_id(enrollment_id)
    _check_student_access(current_user, enrollment.student_id)
    return EnrollmentDetailResponse.model_validate(enrollment)


@router.post(
    "/{enrollment_id}/activate",
    response_model=EnrollmentResponse,
    summary="Activate enrollment",
)
async def activate_enrollment(
    enrollment_id: int,
    current_user: AdminUser,
    service: Enrollments,
) -> EnrollmentResponse:
    """Activate a pending enrollment."""
    enrollment = await service.activate_enrollment(enrollment_id, actor_id=current_user.id)
    return EnrollmentResponse.model_validate(enrollment)


@router.patch(
    "/{enrollment_id}/status",
    response_model=EnrollmentResponse,
    summary="Change enrollment status",
    description="Accepts pending, active or cancelled. Reenrollment is reached only through the batch.",
)
async def update_enrollment_status(
    enrollment_id: int,
    data: EnrollmentStatusUpdateRequest,
    current_user: AdminUser,
    service: Enrollments,
) -> EnrollmentResponse:
    """Change an enrollment's status."""
    enrollment = await service.update_status(
        enrollment_id,
        data.status,
        actor_id=current_user.id,
    )
    return EnrollmentResponse.model_validate(enrollment)


@router.patch(
    "/{enrollment_id}/semester",
    response_model=EnrollmentResponse,
    summary="Correct current semester",
)
async def update_current_semester(
    enrollment_id: int,
    data: EnrollmentSemesterUpdateRequest,
    current_user: AdminUser,
    service: Enrollments,
) -> EnrollmentResponse:
    """Correct an enrollment's semester counter."""
    enrollment = await service.update_current_semester(
        enrollment_id,
        data.current_semester,
        actor_id=current_user.id,
    )
    return EnrollmentResponse.model_validate(enrollment)


@router.post(
    "/{enrollment_id}/cancel",
    response_model=EnrollmentResponse,
    summary="Cancel enrollment",
)
async def cancel_enrollment(
    enrollment_id: int,
    current_user: AdminUser,
    service: Enrollments,
) -> EnrollmentResponse:
    """Cancel an enrollment."""
    enrollment = await service.cancel(enrollment_id, actor_id=current_user.id)
    return EnrollmentResponse.model_validate(enrollment)


@router.delete(
    "/{enrollment_id}",
    response_model=MessageResponse,
    summary="Delete enrollment",
)
async def delete_enrollment(
    enrollment_id: int,
    current_user: AdminUser,
    service: Enrollments,
) -> MessageResponse:
    """Soft delete an enrollment."""
    await service.delete(enrollment_id, actor_id=current_user.id)
    return MessageResponse(message="Enrollment deleted")
