# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Credential store consulted for administrator re-authentication.

Account management itself lives outside this package. This store only
reads users and compares passwords against their stored hashes.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domains.auth.password import PasswordHasher
from src.infrastructure.database.models import User

logger = logging.getLogger(__name__)


class CredentialStore:
    """Read-only access to user credentials.

    Attributes:
        db: Async database session.
    """

    def __init__(self, db: AsyncSession, hasher: PasswordHasher | None = None) -> None:
        """Initialize the credential store.

        Args:
            db: Async database session.
            hasher: Password hasher; the default bcrypt cost if omitted.
        """
        self.db = db
        self._hasher = hasher or PasswordHasher()

    async def find_user(self, user_id: int) -> User | None:
        """Load a non-deleted user by id."""
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    def compare(self, password: str, password_hash: str) -> bool:
        """Compare a plain text password with a stored hash."""
        return self._hasher.verify(password, password_hash)
