# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    enrollments: Enrollment lifecycle endpoints.
    reenrollments: Reenrollment batch, preview and acceptance endpoints.
    contracts: Contract generation, listing and acceptance endpoints.
"""

from fastapi import APIRouter

from src.api.v1 import contracts, enrollments, reenrollments

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(enrollments.router, prefix="/enrollments", tags=["Enrollments"])
router.include_router(reenrollments.router, prefix="/reenrollments", tags=["Reenrollments"])
router.include_router(contracts.router, prefix="/contracts", tags=["Contracts"])

__all__ = ["router"]
