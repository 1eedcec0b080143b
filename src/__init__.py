"""Secretaria Online Backend.

School secretariat administration: enrollments, documents, contracts
and the termly reenrollment cycle.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
