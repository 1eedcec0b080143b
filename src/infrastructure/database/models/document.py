# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document type and document submission models."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.infrastructure.database.models.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from src.infrastructure.database.models.academic import Student


class DocumentStatus(str, Enum):
    """Review status of a submitted document."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentType(Base, TimestampMixin, SoftDeleteMixin):
    """A named document requirement."""

    __tablename__ = "document_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_type: Mapped[str] = mapped_column(String(10), nullable=False, default="both")
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "user_type IN ('student', 'teacher', 'both')",
            name="ck_document_types_user_type",
        ),
    )

    def __repr__(self) -> str:
        return f"<DocumentType(id={self.id}, name={self.name})>"


class Document(Base, TimestampMixin, SoftDeleteMixin):
    """One submission by a student against a document type."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    student_id: Mapped[int] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
    )
    document_type_id: Mapped[int] = mapped_column(
        ForeignKey("document_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=DocumentStatus.PENDING.value,
    )
    file_path: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reviewed_by: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)

    student: Mapped["Student"] = relationship("Student", back_populates="documents")
    document_type: Mapped["DocumentType"] = relationship("DocumentType")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_documents_status",
        ),
        Index("ix_documents_student_type", "student_id", "document_type_id"),
    )

    @property
    def is_approved(self) -> bool:
        """Check if the document has been approved."""
        return self.status == DocumentStatus.APPROVED.value

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, student_id={self.student_id}, status={self.status})>"
