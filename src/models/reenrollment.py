# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Reenrollment API models."""

from pydantic import BaseModel, Field

from src.models.contract import ContractResponse
from src.models.enrollment import EnrollmentResponse


class ReenrollmentBatchRequest(BaseModel):
    """Admin request to move every active enrollment into reenrollment."""

    semester: int = Field(ge=1, le=2)
    year: int = Field(ge=1900, le=9999)
    admin_password: str = Field(min_length=6, description="Current admin password")


class ReenrollmentBatchResponse(BaseModel):
    """Outcome of a batch run."""

    total_affected: int
    affected_ids: list[int]
    semester: int
    year: int


class ContractPreviewResponse(BaseModel):
    """Rendered contract shown to the student before acceptance."""

    contract_html: str
    enrollment_id: int
    semester: int
    year: int


class ReenrollmentAcceptResponse(BaseModel):
    """Enrollment and contract produced by one acceptance."""

    enrollment: EnrollmentResponse
    contract: ContractResponse
