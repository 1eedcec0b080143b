# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment domain: the enrollment state machine."""

from src.domains.enrollment.service import (
    CourseNotFoundError,
    DocumentsNotApprovedError,
    EnrollmentAlreadyCancelledError,
    EnrollmentNotFoundError,
    EnrollmentService,
    EnrollmentServiceError,
    InvalidTransitionError,
    LiveEnrollmentExistsError,
)

__all__ = [
    "CourseNotFoundError",
    "DocumentsNotApprovedError",
    "EnrollmentAlreadyCancelledError",
    "EnrollmentNotFoundError",
    "EnrollmentService",
    "EnrollmentServiceError",
    "InvalidTransitionError",
    "LiveEnrollmentExistsError",
]
