# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reenrollment domain: termly batch and per-student acceptance."""

from src.domains.reenrollment.service import (
    AdminNotFoundError,
    BatchAlreadyProcessedError,
    EnrollmentOwnershipError,
    NotAdminError,
    NotAStudentError,
    NotAwaitingReenrollmentError,
    ReenrollmentAlreadyAcceptedError,
    ReenrollmentService,
    ReenrollmentServiceError,
)

__all__ = [
    "AdminNotFoundError",
    "BatchAlreadyProcessedError",
    "EnrollmentOwnershipError",
    "NotAdminError",
    "NotAStudentError",
    "NotAwaitingReenrollmentError",
    "ReenrollmentAlreadyAcceptedError",
    "ReenrollmentService",
    "ReenrollmentServiceError",
]
