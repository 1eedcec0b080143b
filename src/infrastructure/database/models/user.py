# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User account model.

Accounts are managed outside the enrollment lifecycle. A student
account resolves to its Student row through student_id.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.academic import Student


class UserRole(str, Enum):
    """Account roles."""

    ADMIN = "admin"
    STUDENT = "student"
    TEACHER = "teacher"


class User(Base, TimestampMixin, SoftDeleteMixin):
    """Login account for administrators, students and teachers."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    login: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.STUDENT.value)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    student_id: Mapped[int | None] = mapped_column(
        ForeignKey("students.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    student: Mapped[Optional["Student"]] = relationship("Student")

    __table_args__ = (
        CheckConstraint(
            "role IN ('admin', 'student', 'teacher')",
            name="ck_users_role",
        ),
    )

    @property
    def is_admin(self) -> bool:
        """Check if the account has the admin role."""
        return self.role == UserRole.ADMIN.value

    @property
    def is_student(self) -> bool:
        """Check if the account has the student role."""
        return self.role == UserRole.STUDENT.value

    def __repr__(self) -> str:
        return f"<User(id={self.id}, login={self.login}, role={self.role})>"
