# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial enrollment database schema.

Revision ID: 001_initial
Revises: None
Create Date: 2025-03-10

This migration creates all tables based on the SQLAlchemy models in
src/infrastructure/database/models/.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LIVE_PREDICATE = sa.text("status IN ('pending', 'active', 'reenrollment') AND deleted_at IS NULL")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create enrollment database tables."""
    # ==========================================================================
    # 1. students table
    # ==========================================================================
    op.create_table(
        "students",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("cpf", sa.String(14), unique=True, nullable=True),
        sa.Column("rg", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("street", sa.String(255), nullable=True),
        sa.Column("number", sa.String(20), nullable=True),
        sa.Column("complement", sa.String(100), nullable=True),
        sa.Column("district", sa.String(100), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("state", sa.String(2), nullable=True),
        sa.Column("zip_code", sa.String(10), nullable=True),
        sa.Column("enrollment_code", sa.String(20), unique=True, nullable=True),
        *_timestamps(),
    )

    # ==========================================================================
    # 2. courses table
    # ==========================================================================
    op.create_table(
        "courses",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("duration_semesters", sa.Integer, nullable=False, server_default="1"),
        sa.Column("course_type", sa.String(50), nullable=True),
        *_timestamps(),
    )

    # ==========================================================================
    # 3. users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("login", sa.String(100), unique=True, nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="student"),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "student_id",
            sa.Integer,
            sa.ForeignKey("students.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin', 'student', 'teacher')", name="ck_users_role"),
    )
    op.create_index("ix_users_student_id", "users", ["student_id"])

    # ==========================================================================
    # 4. document_types and documents tables
    # ==========================================================================
    op.create_table(
        "document_types",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("user_type", sa.String(10), nullable=False, server_default="both"),
        sa.Column("is_required", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "user_type IN ('student', 'teacher', 'both')",
            name="ck_document_types_user_type",
        ),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "student_id",
            sa.Integer,
            sa.ForeignKey("students.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "document_type_id",
            sa.Integer,
            sa.ForeignKey("document_types.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("status", sa.String(10), nullable=False, server_default="pending"),
        sa.Column("file_path", sa.String(500), nullable=True),
        sa.Column(
            "reviewed_by",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("observations", sa.Text, nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_documents_status",
        ),
    )
    op.create_index(
        "ix_documents_student_type",
        "documents",
        ["student_id", "document_type_id"],
    )

    # ==========================================================================
    # 5. enrollments table
    # ==========================================================================
    op.create_table(
        "enrollments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "student_id",
            sa.Integer,
            sa.ForeignKey("students.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "course_id",
            sa.Integer,
            sa.ForeignKey("courses.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column(
            "enrollment_date",
            sa.Date,
            nullable=False,
            server_default=sa.text("CURRENT_DATE"),
        ),
        sa.Column("current_semester", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('pending', 'active', 'reenrollment', 'cancelled', 'completed')",
            name="ck_enrollments_status",
        ),
        sa.CheckConstraint("current_semester >= 0", name="ck_enrollments_current_semester"),
    )
    op.create_index("ix_enrollments_student_id", "enrollments", ["student_id"])
    op.create_index("ix_enrollments_course_id", "enrollments", ["course_id"])
    op.create_index("ix_enrollments_status", "enrollments", ["status"])
    # At most one pending, active or reenrollment row per student
    op.create_index(
        "uq_enrollments_student_live",
        "enrollments",
        ["student_id"],
        unique=True,
        postgresql_where=LIVE_PREDICATE,
        sqlite_where=LIVE_PREDICATE,
    )

    # ==========================================================================
    # 6. contract_templates and contracts tables
    # ==========================================================================
    op.create_table(
        "contract_templates",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("version", sa.String(20), nullable=False, server_default="1.0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "contracts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "enrollment_id",
            sa.Integer,
            sa.ForeignKey("enrollments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "template_id",
            sa.Integer,
            sa.ForeignKey("contract_templates.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("artifact_kind", sa.String(10), nullable=False, server_default="pdf"),
        sa.Column("file_path", sa.String(500), nullable=True),
        sa.Column("file_name", sa.String(255), nullable=True),
        sa.Column("semester", sa.Integer, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "artifact_kind IN ('pdf', 'record')",
            name="ck_contracts_artifact_kind",
        ),
    )
    op.create_index("ix_contracts_user_id", "contracts", ["user_id"])
    op.create_index("ix_contracts_enrollment_id", "contracts", ["enrollment_id"])
    op.create_index("ix_contracts_user_period", "contracts", ["user_id", "semester", "year"])

    # ==========================================================================
    # 7. reenrollment_batches table
    # ==========================================================================
    op.create_table(
        "reenrollment_batches",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("semester", sa.Integer, nullable=False),
        sa.Column("year", sa.Integer, nullable=False),
        sa.Column(
            "admin_user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("total_affected", sa.Integer, nullable=False, server_default="0"),
        sa.Column("enrollment_ids", sa.JSON, nullable=False),
        sa.Column(
            "processed_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.UniqueConstraint("semester", "year", name="uq_reenrollment_batches_term"),
    )


def downgrade() -> None:
    """Drop enrollment database tables."""
    op.drop_table("reenrollment_batches")
    op.drop_table("contracts")
    op.drop_table("contract_templates")
    op.drop_index("uq_enrollments_student_live", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_table("documents")
    op.drop_table("document_types")
    op.drop_table("users")
    op.drop_table("courses")
    op.drop_table("students")
