# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document gate for enrollment activation.

Answers whether a student has an approved submission for every
mandatory document type. Read-only: uploads and reviews are handled
elsewhere.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import NotFoundError
from src.infrastructure.database.models import (
    Document,
    DocumentStatus,
    DocumentType,
    Student,
)
from src.models.document import DocumentRequirementStatus, PendingDocumentsResponse

logger = logging.getLogger(__name__)

NOT_SUBMITTED = "not_submitted"


class StudentNotFoundError(NotFoundError):
    """Raised when a student is not found."""

    default_code = "student_not_found"


class DocumentGate:
    """Evaluates a student's mandatory document set.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the document gate.

        Args:
            db: Async database session.
        """
        self.db = db

    async def list_required_types(self, role: str = "student") -> list[DocumentType]:
        """List mandatory document types that apply to a role.

        Args:
            role: "student" or "teacher"; types marked "both" always apply.

        Returns:
            Required document types ordered by id.
        """
        query = (
            select(DocumentType)
            .where(
                DocumentType.is_required.is_(True),
                DocumentType.user_type.in_((role, "both")),
                DocumentType.deleted_at.is_(None),
            )
            .order_by(DocumentType.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_approved(self, student_id: int, document_type_id: int) -> Document | None:
        """Find an approved submission for one (student, type) pair."""
        query = (
            select(Document)
            .where(
                Document.student_id == student_id,
                Document.document_type_id == document_type_id,
                Document.status == DocumentStatus.APPROVED.value,
                Document.deleted_at.is_(None),
            )
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def find_unmet_types(self, student_id: int) -> list[DocumentType]:
        """List required document types the student has no approved submission for.

        Raises:
            StudentNotFoundError: If the student does not exist.
        """
        await self._ensure_student(student_id)

        unmet = []
        for document_type in await self.list_required_types():
            if await self.find_approved(student_id, document_type.id) is None:
                unmet.append(document_type)
        return unmet

    async def validate_documents(self, student_id: int) -> bool:
        """Check that every mandatory document has been approved.

        No mandatory types means the check passes.

        Args:
            student_id: Student identifier.

        Returns:
            True if every required type has an approved submission.

        Raises:
            StudentNotFoundError: If the student does not exist.
        """
        unmet = await self.find_unmet_types(student_id)
        if unmet:
            logger.info(
                "Student %s is missing approved documents: %s",
                student_id,
                ", ".join(t.name for t in unmet),
            )
            return False
        return True

    async def get_pending_documents(self, student_id: int) -> PendingDocumentsResponse:
        """Report the state of every mandatory document for a student.

        The status shown is that of the most recent submission; a type
        counts as approved if any of its submissions was approved.

        Raises:
            StudentNotFoundError: If the student does not exist.
        """
        await self._ensure_student(student_id)
        required_types = await self.list_required_types()

        result = await self.db.execute(
            select(Document)
            .where(Document.student_id == student_id, Document.deleted_at.is_(None))
            .order_by(Document.created_at.desc(), Document.id.desc())
        )
        submissions = result.scalars().all()

        items = []
        for document_type in required_types:
            of_type = [d for d in submissions if d.document_type_id == document_type.id]
            items.append(
                DocumentRequirementStatus(
                    document_type_id=document_type.id,
                    document_type_name=document_type.name,
                    is_approved=any(d.is_approved for d in of_type),
                    status=of_type[0].status if of_type else NOT_SUBMITTED,
                    submitted=bool(of_type),
                )
            )

        return PendingDocumentsResponse(
            student_id=student_id,
            items=items,
            all_approved=all(item.is_approved for item in items),
        )

    async def _ensure_student(self, student_id: int) -> Student:
        result = await self.db.execute(
            select(Student).where(Student.id == student_id, Student.deleted_at.is_(None))
        )
        student = result.scalar_one_or_none()
        if not student:
            raise StudentNotFoundError(f"Student {student_id} not found")
        return student
