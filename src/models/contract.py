# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contract API models."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.models.common import ORMModel


class ContractGenerateRequest(BaseModel):
    """Request to generate a first-enrollment contract."""

    user_id: int = Field(gt=0)
    enrollment_id: int | None = Field(default=None, gt=0)
    template_id: int | None = Field(default=None, gt=0)
    semester: int | None = Field(default=None, ge=1, le=2)
    year: int | None = Field(default=None, ge=1900, le=9999)


class ContractResponse(ORMModel):
    """Contract row."""

    id: int
    user_id: int
    enrollment_id: int | None = None
    template_id: int
    artifact_kind: str
    file_path: str | None = None
    file_name: str | None = None
    semester: int
    year: int
    accepted_at: datetime | None = None
    is_accepted: bool
    created_at: datetime | None = None


class ContractListResponse(BaseModel):
    """List of contracts."""

    items: list[ContractResponse]
    total: int


class PendingContractsResponse(BaseModel):
    """Count of the caller's contracts awaiting acceptance."""

    has_pending: bool
    count: int
