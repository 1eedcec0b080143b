# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""PDF contract writer using ReportLab.

Rendered contracts may be plain text or simple HTML. Markup is reduced
to paragraphs of text before layout; ReportLab builds the document in a
worker thread so the event loop is not blocked.

Example:
    writer = PdfContractWriter("uploads/contracts")
    path = await writer.write(rendered, "contract_12_1_2026.pdf", title="Contrato")
"""

import asyncio
import html
import logging
import re
from pathlib import Path
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer
from reportlab.platypus.doctemplate import LayoutError

logger = logging.getLogger(__name__)

_BREAK_TAGS = re.compile(r"<\s*(br\s*/?|/p|/div|/h[1-6]|/li)\s*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_BLANK_LINES = re.compile(r"\n\s*\n")


class ArtifactWriteError(Exception):
    """Raised when a contract artifact cannot be written.

    Attributes:
        message: Human-readable error description.
        original_error: The filesystem or ReportLab error underneath.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


def html_to_paragraphs(content: str) -> list[str]:
    """Reduce simple HTML or plain text to a list of paragraphs."""
    text = _BREAK_TAGS.sub("\n\n", content)
    text = html.unescape(_ANY_TAG.sub("", text))
    return [block.strip() for block in _BLANK_LINES.split(text) if block.strip()]


class PdfContractWriter:
    """Writes rendered contracts as A4 PDF files.

    Attributes:
        output_dir: Directory the PDFs are written to.
    """

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    async def write(self, content: str, file_name: str, title: str | None = None) -> str:
        """Write a PDF and return its path.

        Raises:
            ArtifactWriteError: If the file cannot be created or laid out.
        """
        path = self.output_dir / file_name
        try:
            await asyncio.to_thread(self._build, path, content, title)
        except (OSError, ValueError, LayoutError) as e:
            if path.is_file():
                path.unlink()
            raise ArtifactWriteError(f"Failed to write contract PDF {file_name}", e) from e
        logger.info("Contract PDF written: %s", path)
        return str(path)

    def _build(self, path: Path, content: str, title: str | None) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = SimpleDocTemplate(str(path), pagesize=A4, title=title or path.stem)
        styles = getSampleStyleSheet()
        elements = []

        if title:
            elements.append(Paragraph(escape(title), styles["Title"]))
            elements.append(Spacer(1, 20))

        for block in html_to_paragraphs(content):
            elements.append(Paragraph(escape(block).replace("\n", "<br/>"), styles["BodyText"]))
            elements.append(Spacer(1, 8))

        doc.build(elements)
