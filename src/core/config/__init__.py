# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for Secretaria Online.

Settings are Pydantic models loaded from environment variables.

Example:
    >>> from src.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.enrollment.enforce_document_gate
    False
"""

from src.core.config.settings import (
    APISettings,
    ContractSettings,
    CORSSettings,
    DatabaseSettings,
    EnrollmentSettings,
    JWTSettings,
    RateLimitSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    "APISettings",
    "ContractSettings",
    "CORSSettings",
    "DatabaseSettings",
    "EnrollmentSettings",
    "JWTSettings",
    "RateLimitSettings",
    "Settings",
    "clear_settings_cache",
    "get_settings",
]
