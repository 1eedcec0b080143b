# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contract API endpoints.

This module provides endpoints for contracts:
- POST /generate - Generate a first-enrollment PDF contract
- GET / - List every contract
- GET /me - List the caller's contracts
- GET /me/pending - Count the caller's contracts awaiting acceptance
- GET /me/period - List the caller's contracts for one term
- GET /{contract_id} - Get a contract
- POST /{contract_id}/accept - Accept a contract
- DELETE /{contract_id} - Soft delete a contract
"""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, HTTPException, Query, status

from src.api.dependencies import AdminUser, AuthenticatedUser, Contracts
from src.models.common import MessageResponse
from src.models.contract import (
    ContractGenerateRequest,
    ContractListResponse,
    ContractResponse,
    PendingContractsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

AcceptanceFilter = Annotated[
    Literal["pending", "accepted"] | None,
    Query(alias="status", description="Filter by acceptance status"),
]


@router.post(
    "/generate",
    response_model=ContractResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate contract",
)
async def generate_contract(
    data: ContractGenerateRequest,
    current_user: AdminUser,
    service: Contracts,
) -> ContractResponse:
    """Generate a PDF contract for a student or teacher."""
    contract = await service.generate_contract(
        user_id=data.user_id,
        semester=data.semester,
        year=data.year,
        template_id=data.template_id,
        enrollment_id=data.enrollment_id,
        actor_id=current_user.id,
    )
    return ContractResponse.model_validate(contract)


@router.get(
    "",
    response_model=ContractListResponse,
    summary="List contracts",
)
async def list_contracts(
    current_user: AdminUser,
    service: Contracts,
    status_filter: AcceptanceFilter = None,
) -> ContractListResponse:
    """List every contract, optionally by acceptance status."""
    contracts = await service.get_all(status=status_filter)
    return ContractListResponse(
        items=[ContractResponse.model_validate(c) for c in contracts],
        total=len(contracts),
    )


@router.get(
    "/me",
    response_model=ContractListResponse,
    summary="List my contracts",
)
async def list_my_contracts(
    current_user: AuthenticatedUser,
    service: Contracts,
    status_filter: AcceptanceFilter = None,
) -> ContractListResponse:
    """List the caller's contracts."""
    if status_filter == "pending":
        contracts = await service.get_pending_by_user(current_user.id)
    elif status_filter == "accepted":
        contracts = await service.get_accepted_by_user(current_user.id)
    else:
        contracts = await service.get_all_by_user(current_user.id)
    return ContractListResponse(
        items=[ContractResponse.model_validate(c) for c in contracts],
        total=len(contracts),
    )


@router.get(
    "/me/pending",
    response_model=PendingContractsResponse,
    summary="Count my pending contracts",
)
async def count_my_pending_contracts(
    current_user: AuthenticatedUser,
    service: Contracts,
) -> PendingContractsResponse:
    """Count the caller's contracts awaiting acceptance."""
    count = await service.count_pending_contracts(current_user.id)
    return PendingContractsResponse(has_pending=count > 0, count=count)


@router.get(
    "/me/period",
    response_model=ContractListResponse,
    summary="List my contracts for a term",
)
async def list_my_contracts_for_period(
    current_user: AuthenticatedUser,
    service: Contracts,
    semester: Annotated[int, Query(ge=1)],
    year: Annotated[int, Query(ge=1900, le=9999)],
) -> ContractListResponse:
    """List the caller's contracts for one semester and year."""
    contracts = await service.get_by_period(current_user.id, semester, year)
    return ContractListResponse(
        items=[ContractResponse.model_validate(c) for c in contracts],
        total=len(contracts),
    )


@router.get(
    "/{contract_id}",
    response_model=ContractResponse,
    summary="Get contract",
)
async def get_contract(
    contract_id: int,
    current_user: AuthenticatedUser,
    service: Contracts,
) -> ContractResponse:
    """Get a contract. Non-admins may only read their own."""
    contract = await service.get_by_id(contract_id)
    if not current_user.is_admin and contract.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied to this contract",
        )
    return ContractResponse.model_validate(contract)


@router.post(
    "/{contract_id}/accept",
    response_model=ContractResponse,
    summary="Accept contract",
)
async def accept_contract(
    contract_id: int,
    current_user: AuthenticatedUser,
    service: Contracts,
) -> ContractResponse:
    """Accept a contract on behalf of its owner."""
    contract = await service.accept_contract(contract_id, current_user.id)
    return ContractResponse.model_validate(contract)


@router.delete(
    "/{contract_id}",
    response_model=MessageResponse,
    summary="Delete contract",
)
async def delete_contract(
    contract_id: int,
    current_user: AdminUser,
    service: Contracts,
) -> MessageResponse:
    """Soft delete a contract."""
    await service.delete(contract_id, actor_id=current_user.id)
    return MessageResponse(message="Contract deleted")
