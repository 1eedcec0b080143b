# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Password hashing utilities using bcrypt.

Account passwords are stored as bcrypt hashes. The reenrollment batch
re-validates the administrator's password against the stored hash
through this module.

Example:
    >>> hasher = PasswordHasher(rounds=4)
    >>> stored = hasher.hash("admin123")
    >>> hasher.verify("admin123", stored)
    True
"""

import logging

import bcrypt

logger = logging.getLogger(__name__)


class PasswordHasher:
    """bcrypt hashing with an embedded per-hash salt.

    Attributes:
        rounds: bcrypt cost factor used for new hashes.
    """

    def __init__(self, rounds: int = 12) -> None:
        """Initialize the password hasher.

        Args:
            rounds: bcrypt cost factor. Tests use 4 to stay fast.
        """
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a plain text password.

        Raises:
            ValueError: If password is empty.
        """
        if not password:
            raise ValueError("Password cannot be empty")

        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Compare a plain text password with a stored hash.

        A malformed stored hash counts as a mismatch; it never raises.

        Args:
            password: Plain text password supplied by the caller.
            password_hash: Stored bcrypt hash.

        Returns:
            True if the password matches the hash.
        """
        if not password or not password_hash:
            return False

        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            logger.warning("Malformed password hash: %s", str(e))
            return False


_default_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password with the default hasher."""
    return _default_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password with the default hasher."""
    return _default_hasher.verify(password, password_hash)
