"""
Parsers for extension lists written in YAML.
"""
from importlib import resources
from typing import Any, List

import yaml
from pydantic import ValidationError

from ..MODELS.extension_case import ExtensionCase


class ExtensionListParser:
    """
    Parser for extension list files.

    The file holds an ``extensions`` sequence; each entry has a ``name``, a
    ``query`` and optionally ``cascade: false``.
    """

    def parse(self, path: str) -> List[ExtensionCase]:
        """
        Parses an extension list from a file path.
        """
        with open(path, 'r') as f:
            content = f.read()
        return self.parse_from_string(content)

    def parse_default(self) -> List[ExtensionCase]:
        """
        Parses the extension list bundled with the package.
        """
        content = resources.files("pgimage").joinpath("data", "extensions.yml").read_text()
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> List[ExtensionCase]:
        """
        Parses an extension list from YAML content.
        """
        data = yaml.safe_load(content) or {}
        if isinstance(data, dict):
            entries = data.get("extensions", [])
        else:
            entries = data

        if not isinstance(entries, list):
            raise ValueError("'extensions' must be a list")

        cases = []
        for entry in entries:
            cases.append(self._parse_entry(entry))
        return cases

    def _parse_entry(self, entry: Any) -> ExtensionCase:
        if not isinstance(entry, dict):
            raise ValueError(f"Extension entry must be a mapping, got {entry!r}")
        try:
            return ExtensionCase(**entry)
        except ValidationError as e:
            raise ValueError(f"Invalid extension entry {entry.get('name', entry)!r}: {e}") from e
