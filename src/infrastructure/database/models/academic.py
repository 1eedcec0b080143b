# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Student and course models.

Both are owned by the administrative CRUD layer; the enrollment
lifecycle only reads them.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.document import Document
    from src.infrastructure.database.models.enrollment import Enrollment


class Student(Base, TimestampMixin, SoftDeleteMixin):
    """A student's identity and contact record."""

    __tablename__ = "students"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    cpf: Mapped[str | None] = mapped_column(String(14), unique=True, nullable=True)
    rg: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    street: Mapped[str | None] = mapped_column(String(255), nullable=True)
    number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    complement: Mapped[str | None] = mapped_column(String(100), nullable=True)
    district: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(2), nullable=True)
    zip_code: Mapped[str | None] = mapped_column(String(10), nullable=True)

    enrollment_code: Mapped[str | None] = mapped_column(String(20), unique=True, nullable=True)

    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment",
        back_populates="student",
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document",
        back_populates="student",
    )

    @property
    def full_address(self) -> str:
        """Render the address as a single line, skipping empty parts."""
        first_line = ", ".join(p for p in (self.street, self.number) if p)
        if self.complement:
            first_line = f"{first_line} - {self.complement}" if first_line else self.complement
        city_state = "/".join(p for p in (self.city, self.state) if p)
        parts = [first_line, self.district, city_state]
        if self.zip_code:
            parts.append(f"CEP {self.zip_code}")
        return ", ".join(p for p in parts if p)

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, name={self.name})>"


class Course(Base, TimestampMixin, SoftDeleteMixin):
    """A catalog course with a nominal duration in semesters."""

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_semesters: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    course_type: Mapped[str | None] = mapped_column(String(50), nullable=True)

    enrollments: Mapped[list["Enrollment"]] = relationship(
        "Enrollment",
        back_populates="course",
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name={self.name})>"
