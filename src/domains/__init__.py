# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for Secretaria Online.

This package contains domain services that encapsulate business logic.

Domains:
    auth: Password hashing, token decoding and admin re-authentication.
    document: Mandatory document gate for enrollment activation.
    enrollment: Enrollment lifecycle state machine.
    contract: Contract templates, rendering and acceptance.
    reenrollment: Termly batch transition and per-student acceptance.
"""
