# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Document artifact writers."""

from src.infrastructure.documents.pdf import (
    ArtifactWriteError,
    PdfContractWriter,
    html_to_paragraphs,
)

__all__ = ["ArtifactWriteError", "PdfContractWriter", "html_to_paragraphs"]
