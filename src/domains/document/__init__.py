# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document domain: the mandatory-document gate."""

from src.domains.document.gate import DocumentGate, StudentNotFoundError

__all__ = ["DocumentGate", "StudentNotFoundError"]
