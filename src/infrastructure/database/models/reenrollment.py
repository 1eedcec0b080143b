# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reenrollment batch ledger.

One row per processed (semester, year). The unique constraint is the
idempotency key that keeps a term from being batched twice.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base
from src.utils.datetime import utc_now


class ReenrollmentBatch(Base):
    """Audit row written in the same transaction as the bulk transition."""

    __tablename__ = "reenrollment_batches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    admin_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
    )
    total_affected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enrollment_ids: Mapped[list[int]] = mapped_column(nullable=False, default=list)
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    __table_args__ = (
        UniqueConstraint("semester", "year", name="uq_reenrollment_batches_term"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReenrollmentBatch(id={self.id}, term={self.semester}/{self.year}, "
            f"total={self.total_affected})>"
        )
