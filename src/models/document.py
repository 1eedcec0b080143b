# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document gate API models."""

from pydantic import BaseModel


class DocumentRequirementStatus(BaseModel):
    """Submission state of one required document type for a student."""

    document_type_id: int
    document_type_name: str
    is_approved: bool
    status: str
    submitted: bool


class PendingDocumentsResponse(BaseModel):
    """Per-type report backing the activation gate."""

    student_id: int
    items: list[DocumentRequirementStatus]
    all_approved: bool
