# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contract domain: templates, rendering, creation and acceptance."""

from src.domains.contract.renderer import (
    PLACEHOLDER_PATTERN,
    ContractArtifactWriter,
    PlaceholderRenderer,
)
from src.domains.contract.service import (
    ContractAlreadyAcceptedError,
    ContractNotFoundError,
    ContractOwnershipError,
    ContractService,
    ContractServiceError,
    InvalidContractUserError,
    NoTemplateAvailableError,
    TemplateNotFoundError,
    UserNotFoundError,
)

__all__ = [
    "PLACEHOLDER_PATTERN",
    "ContractAlreadyAcceptedError",
    "ContractArtifactWriter",
    "ContractNotFoundError",
    "ContractOwnershipError",
    "ContractService",
    "ContractServiceError",
    "InvalidContractUserError",
    "NoTemplateAvailableError",
    "PlaceholderRenderer",
    "TemplateNotFoundError",
    "UserNotFoundError",
]
