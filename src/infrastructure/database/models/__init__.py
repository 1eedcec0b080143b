# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for Secretaria Online.

Importing this package registers every table on Base.metadata, which
alembic autogeneration and the test fixtures rely on.
"""

from src.infrastructure.database.models.academic import Course, Student
from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin
from src.infrastructure.database.models.contract import ArtifactKind, Contract, ContractTemplate
from src.infrastructure.database.models.document import Document, DocumentStatus, DocumentType
from src.infrastructure.database.models.enrollment import (
    LIVE_STATUSES,
    Enrollment,
    EnrollmentStatus,
)
from src.infrastructure.database.models.reenrollment import ReenrollmentBatch
from src.infrastructure.database.models.user import User, UserRole

__all__ = [
    "ArtifactKind",
    "Base",
    "Contract",
    "ContractTemplate",
    "Course",
    "Document",
    "DocumentStatus",
    "DocumentType",
    "Enrollment",
    "EnrollmentStatus",
    "LIVE_STATUSES",
    "ReenrollmentBatch",
    "SoftDeleteMixin",
    "Student",
    "TimestampMixin",
    "User",
    "UserRole",
]
