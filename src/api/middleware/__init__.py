# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API middleware components.

Exports:
    AuthMiddleware: JWT authentication middleware.
    CurrentUser: Authenticated user resolved from the access token.
    limiter: slowapi rate limiter.
"""

from src.api.middleware.auth import AuthMiddleware, CurrentUser
from src.api.middleware.rate_limit import limiter

__all__ = [
    "AuthMiddleware",
    "CurrentUser",
    "limiter",
]
