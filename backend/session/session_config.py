"""
Per-connection session configuration.

The device may send one JSON object before processing starts:

    {"includeText": true}

Anything that is not a JSON object (non-JSON, arrays, scalars, bad
UTF-8) means "no config supplied". It is never an error.
"""

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class SessionConfig:
    """
    Fixed optional-field view of the device's config message.

    None means the field was not supplied and the process default applies.
    """
    include_text: bool | None = None

    @staticmethod
    def parse(raw: bytes) -> SessionConfig | None:
        """
        Parse the first inbound data on a connection.

        Returns:
            SessionConfig if the data is a JSON object, else None.
            A non-boolean includeText value is treated as absent.
        """
        if not raw.strip():
            return None
        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None

        if not isinstance(data, dict):
            return None

        include_text = data.get("includeText")
        if not isinstance(include_text, bool):
            include_text = None
        return SessionConfig(include_text=include_text)

    def resolve_include_text(self, default: bool) -> bool:
        """Effective include-text flag given the process default."""
        return default if self.include_text is None else self.include_text
