# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT access token handling using python-jose.

Tokens are issued by the account service, which lives outside this
package. Secretaria Online only decodes them; create_access_token is
provided for tests and operational tooling.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id=7, role="student", student_id=3)
    >>> jwt_manager.decode_token(token).student_id
    3
"""

import logging
import secrets
from datetime import timedelta
from typing import Literal

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, ValidationError as PydanticValidationError

from src.core.config.settings import JWTSettings
from src.utils.datetime import utc_now

logger = logging.getLogger(__name__)

Role = Literal["admin", "student", "teacher"]


class TokenPayload(BaseModel):
    """JWT access token claims.

    Attributes:
        sub: Subject (user ID, as a string).
        role: Account role.
        student_id: Student row linked to a student account.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    role: Role
    student_id: int | None = None
    exp: int
    iat: int
    jti: str


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """Access token encoder and validator.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        """Initialize the JWT manager.

        Args:
            settings: JWT configuration settings.
        """
        self._settings = settings

    def create_access_token(
        self,
        user_id: int | str,
        role: Role,
        student_id: int | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create a signed access token.

        Args:
            user_id: Account identifier.
            role: Account role.
            student_id: Linked Student row, for student accounts.
            expires_delta: Lifetime override; defaults to settings.

        Returns:
            JWT access token string.
        """
        now = utc_now()
        exp = now + (expires_delta or timedelta(minutes=self._settings.access_token_expire_minutes))

        payload = {
            "sub": str(user_id),
            "role": role,
            "student_id": student_id,
            "exp": int(exp.timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }

        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate an access token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature or claims are invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
            return TokenPayload.model_validate(payload)
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except (JoseJWTError, PydanticValidationError) as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    def verify_token(self, token: str) -> bool:
        """Check whether a token decodes cleanly."""
        try:
            self.decode_token(token)
            return True
        except JWTError:
            return False
