# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for Secretaria Online.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime and academic term helpers
"""

from src.utils.datetime import (
    current_term,
    ensure_utc,
    format_br_date,
    format_iso,
    semester_of,
    utc_now,
    utc_today,
)
from src.utils.logging import (
    bind_context,
    clear_context,
    get_audit_logger,
    get_logger,
    setup_logging,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "get_audit_logger",
    "bind_context",
    "clear_context",
    # Datetime
    "utc_now",
    "utc_today",
    "ensure_utc",
    "format_iso",
    "format_br_date",
    "semester_of",
    "current_term",
]
