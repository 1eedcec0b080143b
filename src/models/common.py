# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Common API models shared across domains."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    """Base for response models built from SQLAlchemy rows."""

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Simple acknowledgement."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned by the domain exception handler."""

    detail: str = Field(description="Human-readable error message")
    code: str = Field(description="Machine-readable error code")
    details: dict[str, Any] | None = None
