# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment API models."""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

from src.models.common import ORMModel


class EnrollmentCreateRequest(BaseModel):
    """Request to enroll a student in a course."""

    student_id: int = Field(gt=0)
    course_id: int = Field(gt=0)
    enrollment_date: date | None = Field(
        default=None,
        description="Defaults to today; may not be in the future",
    )


class EnrollmentStatusUpdateRequest(BaseModel):
    """Generic status change; reenrollment is reached only through the batch."""

    status: Literal["pending", "active", "cancelled"]


class EnrollmentSemesterUpdateRequest(BaseModel):
    """Administrative correction of the semester counter."""

    current_semester: int = Field(ge=0)


class StudentSummary(ORMModel):
    """Student fields embedded in enrollment details."""

    id: int
    name: str
    cpf: str | None = None
    email: str | None = None
    enrollment_code: str | None = None


class CourseSummary(ORMModel):
    """Course fields embedded in enrollment details."""

    id: int
    name: str
    duration_semesters: int


class EnrollmentResponse(ORMModel):
    """Enrollment row."""

    id: int
    student_id: int
    course_id: int
    status: str
    enrollment_date: date
    current_semester: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class EnrollmentDetailResponse(EnrollmentResponse):
    """Enrollment with its student and course."""

    student: StudentSummary
    course: CourseSummary


class EnrollmentListResponse(BaseModel):
    """List of enrollments."""

    items: list[EnrollmentDetailResponse]
    total: int


class CanEnrollResponse(BaseModel):
    """Pre-flight check for a new enrollment."""

    student_id: int
    can_enroll: bool
