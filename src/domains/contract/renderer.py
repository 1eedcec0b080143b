# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Contract template rendering.

Templates are plain text or HTML with {{key}} tokens. Substitution is a
pure function of the template and the placeholder map; tokens with no
value in the map are left in place.

Turning a rendered contract into a file is delegated to a
ContractArtifactWriter, so the service never depends on a particular
PDF engine.
"""

import re
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


class PlaceholderRenderer:
    """Substitutes {{key}} tokens in contract templates."""

    def render(self, content: str, data: Mapping[str, Any]) -> str:
        """Render a template.

        Args:
            content: Template text.
            data: Placeholder values; non-string values are str()-ed.

        Returns:
            The rendered text.
        """

        def _substitute(match: re.Match[str]) -> str:
            key = match.group(1)
            if key not in data or data[key] is None:
                return match.group(0)
            return str(data[key])

        return PLACEHOLDER_PATTERN.sub(_substitute, content)

    def list_placeholders(self, content: str) -> list[str]:
        """List the distinct placeholder names in order of first use."""
        seen: dict[str, None] = {}
        for match in PLACEHOLDER_PATTERN.finditer(content):
            seen.setdefault(match.group(1), None)
        return list(seen)


@runtime_checkable
class ContractArtifactWriter(Protocol):
    """Persists a rendered contract as a file."""

    async def write(self, content: str, file_name: str, title: str | None = None) -> str:
        """Write the artifact and return its stored path.

        Raises:
            ArtifactWriteError: If the artifact cannot be stored.
        """
        ...
