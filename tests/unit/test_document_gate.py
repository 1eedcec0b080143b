# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the document gate."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.domains.document import DocumentGate, StudentNotFoundError
from src.infrastructure.database.models import Document, DocumentType


def _result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def _rows(values):
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


@pytest.fixture
def mock_db():
    db = AsyncMock()
    db.execute = AsyncMock()
    return db


@pytest.fixture
def gate(mock_db):
    return DocumentGate(mock_db)


@pytest.fixture
def student():
    student = MagicMock()
    student.id = 10
    return student


@pytest.fixture
def required_types():
    return [
        DocumentType(id=1, name="RG", user_type="both", is_required=True),
        DocumentType(id=2, name="Histórico escolar", user_type="student", is_required=True),
    ]


class TestValidateDocuments:
    """Tests for the mandatory document check."""

    @pytest.mark.asyncio
    async def test_all_approved(self, gate, mock_db, student, required_types):
        mock_db.execute.side_effect = [
            _result(student),
            _rows(required_types),
            _result(Document(id=100, student_id=10, document_type_id=1, status="approved")),
            _result(Document(id=101, student_id=10, document_type_id=2, status="approved")),
        ]

        assert await gate.validate_documents(10) is True

    @pytest.mark.asyncio
    async def test_missing_approval(self, gate, mock_db, student, required_types):
        mock_db.execute.side_effect = [
            _result(student),
            _rows(required_types),
            _result(Document(id=100, student_id=10, document_type_id=1, status="approved")),
            _result(None),
        ]

        assert await gate.validate_documents(10) is False

    @pytest.mark.asyncio
    async def test_no_required_types_passes(self, gate, mock_db, student):
        mock_db.execute.side_effect = [_result(student), _rows([])]

        assert await gate.validate_documents(10) is True

    @pytest.mark.asyncio
    async def test_unknown_student(self, gate, mock_db):
        mock_db.execute.return_value = _result(None)

        with pytest.raises(StudentNotFoundError) as exc_info:
            await gate.validate_documents(999)

        assert exc_info.value.status_code == 404


class TestPendingDocuments:
    """Tests for the per-type document report."""

    @pytest.mark.asyncio
    async def test_report_uses_latest_status(self, gate, mock_db, student, required_types):
        submissions = [
            # Newest first
            Document(id=103, student_id=10, document_type_id=1, status="rejected"),
            Document(id=100, student_id=10, document_type_id=1, status="approved"),
        ]
        mock_db.execute.side_effect = [
            _result(student),
            _rows(required_types),
            _rows(submissions),
        ]

        report = await gate.get_pending_documents(10)

        assert report.student_id == 10
        assert report.all_approved is False
        rg, transcript = report.items
        assert rg.is_approved is True
        assert rg.status == "rejected"
        assert rg.submitted is True
        assert transcript.is_approved is False
        assert transcript.status == "not_submitted"
        assert transcript.submitted is False
