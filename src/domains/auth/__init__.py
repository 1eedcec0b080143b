# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Authentication helpers consumed by the enrollment lifecycle.

Login and token issuance belong to the account service. This package
decodes access tokens, hashes and verifies passwords, and reads the
credentials used for administrator re-authentication.

Exports:
    PasswordHasher: bcrypt password hashing.
    JWTManager: Access token encoding and validation.
    CredentialStore: User lookup and password comparison.
"""

from src.domains.auth.credentials import CredentialStore
from src.domains.auth.jwt import JWTManager
from src.domains.auth.password import PasswordHasher

__all__ = [
    "CredentialStore",
    "JWTManager",
    "PasswordHasher",
]
