# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the PDF contract writer."""

import pytest

from src.infrastructure.documents import (
    ArtifactWriteError,
    PdfContractWriter,
    html_to_paragraphs,
)


def test_html_to_paragraphs():
    content = "<h1>Contrato</h1><p>Maria &amp; Direito</p><p>Linha 1<br/>Linha 2</p>"

    assert html_to_paragraphs(content) == ["Contrato", "Maria & Direito", "Linha 1", "Linha 2"]


class TestPdfContractWriter:
    """Tests for PdfContractWriter."""

    @pytest.mark.asyncio
    async def test_write(self, tmp_path):
        writer = PdfContractWriter(tmp_path / "contracts")

        path = await writer.write("<p>Contrato de Maria</p>", "contract_1.pdf", title="Contrato")

        assert path == str(tmp_path / "contracts" / "contract_1.pdf")
        assert (tmp_path / "contracts" / "contract_1.pdf").read_bytes().startswith(b"%PDF")

    @pytest.mark.asyncio
    async def test_unwritable_directory(self, tmp_path):
        """An output directory that cannot be created is reported as a write error."""
        blocker = tmp_path / "contracts"
        blocker.write_text("not a directory")
        writer = PdfContractWriter(blocker / "2025")

        with pytest.raises(ArtifactWriteError) as exc_info:
            await writer.write("<p>Contrato</p>", "contract_1.pdf")

        assert isinstance(exc_info.value.original_error, OSError)
        assert blocker.read_text() == "not a directory"
