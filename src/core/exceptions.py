# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain error taxonomy.

Every business-rule violation is raised as a subclass of SecretariaError
carrying a machine-readable code and the HTTP status the API layer maps
it to. Storage failures are surfaced as InternalError, whose message
never contains the underlying driver error.

Example:
    >>> raise ConflictError("Enrollment already cancelled", code="enrollment_already_cancelled")
"""

from typing import Any


class SecretariaError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: Human-readable error description.
        code: Machine-readable error code.
        details: Extra structured context for the caller.
        status_code: HTTP status used by the API exception handler.
    """

    status_code: int = 500
    default_code: str = "error"

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error description.
            code: Machine-readable code; defaults to the class default.
            details: Optional structured context.
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        payload: dict[str, Any] = {"detail": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(SecretariaError):
    """Raised when operation arguments are malformed."""

    status_code = 400
    default_code = "invalid_argument"


class NotFoundError(SecretariaError):
    """Raised when an entity is absent."""

    status_code = 404
    default_code = "not_found"


class ForbiddenError(SecretariaError):
    """Raised on ownership or role violations."""

    status_code = 403
    default_code = "forbidden"


class ConflictError(SecretariaError):
    """Raised on duplicate or idempotence violations."""

    status_code = 409
    default_code = "conflict"


class UnprocessableEntityError(SecretariaError):
    """Raised when a business rule forbids the requested transition."""

    status_code = 422
    default_code = "unprocessable_entity"


class InternalError(SecretariaError):
    """Raised when storage or a transaction fails.

    The message is generic; the original error is logged, not returned.
    """

    status_code = 500
    default_code = "internal_error"

    def to_dict(self) -> dict[str, Any]:
        """Serialize without details."""
        return {"detail": self.message, "code": self.code}
