# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contract template and contract models.

A contract is accepted exactly once; accepted_at never changes after
it is first set.
"""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.enrollment import Enrollment
    from src.infrastructure.database.models.user import User


class ArtifactKind(str, Enum):
    """What a contract row points at.

    PDF contracts have a rendered file on disk. RECORD contracts are
    rows created on reenrollment acceptance with no file attached.
    """

    PDF = "pdf"
    RECORD = "record"


class ContractTemplate(Base, TimestampMixin, SoftDeleteMixin):
    """A versioned contract skeleton with {{placeholder}} tokens."""

    __tablename__ = "contract_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    version: Mapped[str] = mapped_column(String(20), nullable=False, default="1.0")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ContractTemplate(id={self.id}, name={self.name}, version={self.version})>"


class Contract(Base, TimestampMixin, SoftDeleteMixin):
    """A contract issued to a student for a given semester and year."""

    __tablename__ = "contracts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    enrollment_id: Mapped[int | None] = mapped_column(
        ForeignKey("enrollments.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    template_id: Mapped[int] = mapped_column(
        ForeignKey("contract_templates.id", ondelete="RESTRICT"),
        nullable=False,
    )
    artifact_kind: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=ArtifactKind.PDF.value,
    )
    file_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user: Mapped["User"] = relationship("User")
    enrollment: Mapped[Optional["Enrollment"]] = relationship("Enrollment", back_populates="contracts")
    template: Mapped["ContractTemplate"] = relationship("ContractTemplate")

    __table_args__ = (
        CheckConstraint("artifact_kind IN ('pdf', 'record')", name="ck_contracts_artifact_kind"),
        Index("ix_contracts_user_period", "user_id", "semester", "year"),
    )

    @property
    def is_accepted(self) -> bool:
        """Check if the contract has been accepted."""
        return self.accepted_at is not None

    def __repr__(self) -> str:
        return f"<Contract(id={self.id}, user_id={self.user_id}, {self.semester}/{self.year})>"
