"""Record where caller overrides replaced document-derived values."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from lossmit.models import _plain


@dataclass
class AuditEntry:
    field: str
    document_value: Any
    caller_value: Any


class AuditLog:
    """In-memory override log attached to a composite evaluation."""

    def __init__(self) -> None:
        self.entries: List[AuditEntry] = []

    def record(self, field: str, document_value: Any, caller_value: Any) -> None:
        """Record that ``caller_value`` replaced the extracted ``document_value``."""
        self.entries.append(
            AuditEntry(field=field, document_value=document_value, caller_value=caller_value)
        )

    def fields(self) -> List[str]:
        return [e.field for e in self.entries]

    def as_dict(self) -> List[dict]:
        """Return log entries as plain dictionaries for the result envelope."""
        return [
            {
                "field": e.field,
                "document_value": _plain(e.document_value),
                "caller_value": _plain(e.caller_value),
            }
            for e in self.entries
        ]
