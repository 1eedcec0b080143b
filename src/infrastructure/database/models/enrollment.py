# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Enrollment model and lifecycle statuses.

A student holds at most one live enrollment (pending, active or
reenrollment) at a time. The service layer checks this before writing;
the partial unique index below enforces it in the database as well.
"""

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin
from src.utils.datetime import utc_today

if TYPE_CHECKING:
    from src.infrastructure.database.models.academic import Course, Student
    from src.infrastructure.database.models.contract import Contract


class EnrollmentStatus(str, Enum):
    """Enrollment lifecycle states.

    COMPLETED is part of the schema but no transition produces it yet.
    """

    PENDING = "pending"
    ACTIVE = "active"
    REENROLLMENT = "reenrollment"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


LIVE_STATUSES: tuple[str, ...] = (
    EnrollmentStatus.PENDING.value,
    EnrollmentStatus.ACTIVE.value,
    EnrollmentStatus.REENROLLMENT.value,
)

_LIVE_PREDICATE = text(
    "status IN ('pending', 'active', 'reenrollment') AND deleted_at IS NULL"
)


class Enrollment(Base, TimestampMixin, SoftDeleteMixin):
    """A student's relationship to one course over time."""

    __tablename__ = "enrollments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=EnrollmentStatus.PENDING.value,
        index=True,
    )
    enrollment_date: Mapped[date] = mapped_column(Date, nullable=False, default=utc_today)
    current_semester: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    student: Mapped["Student"] = relationship("Student", back_populates="enrollments")
    course: Mapped["Course"] = relationship("Course", back_populates="enrollments")
    contracts: Mapped[list["Contract"]] = relationship("Contract", back_populates="enrollment")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'active', 'reenrollment', 'cancelled', 'completed')",
            name="ck_enrollments_status",
        ),
        CheckConstraint("current_semester >= 0", name="ck_enrollments_current_semester"),
        Index(
            "uq_enrollments_student_live",
            "student_id",
            unique=True,
            postgresql_where=_LIVE_PREDICATE,
            sqlite_where=_LIVE_PREDICATE,
        ),
    )

    @property
    def is_live(self) -> bool:
        """Check if this enrollment blocks a new one for the same student."""
        return self.deleted_at is None and self.status in LIVE_STATUSES

    def __repr__(self) -> str:
        return (
            f"<Enrollment(id={self.id}, student_id={self.student_id}, "
            f"course_id={self.course_id}, status={self.status})>"
        )
