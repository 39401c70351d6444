# farm_importer/importer/buffer.py
from __future__ import annotations

import copy
import dataclasses
import threading
from typing import Any, Dict, List

from .contract import ExtractedRecord
from .validator import INVALID_CATEGORY_NOTE, category_error

# API spelling -> dataclass field
_ALIASES = {"needsReview": "needs_review"}

_FIELDS = {f.name for f in dataclasses.fields(ExtractedRecord)}


def _drop_stale_category_note(record: ExtractedRecord, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Fixing a bad category removes its note. If that was the only problem
    and the edit does not set needsReview itself, the flag is cleared too.
    """
    if category_error(fields["category"]) is not None:
        return {}
    errors = [e for e in record.errors if not e.startswith(INVALID_CATEGORY_NOTE)]
    if len(errors) == len(record.errors):
        return {}
    changes: Dict[str, Any] = {"errors": errors}
    if not errors and "needs_review" not in fields:
        changes["needs_review"] = False
    return changes


class ReviewBuffer:
    """
    Ordered, in-memory store of extracted records awaiting export.

    Records are only appended or edited in place: there is no delete
    or reorder. One lock serializes pipeline appends and operator edits.
    """

    def __init__(self) -> None:
        self._records: List[ExtractedRecord] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def append(self, record: ExtractedRecord) -> int:
        """Add a record at the end; returns its index."""
        with self._lock:
            self._records.append(record)
            return len(self._records) - 1

    def get(self, index: int) -> ExtractedRecord:
        with self._lock:
            return copy.deepcopy(self._records[self._check(index)])

    def records(self) -> List[ExtractedRecord]:
        """
        Snapshot of the current records. Mutating the result does not
        touch the buffer.
        """
        with self._lock:
            return copy.deepcopy(self._records)

    def update(self, index: int, **changes: Any) -> ExtractedRecord:
        """
        Replace the named fields of the record at `index`.

        Other fields and the record's position are unchanged. Values go
        through the record's own coercion, so list fields stay lists and
        confidence stays in [0, 1].

        Raises:
            IndexError: no record at `index`
            KeyError: unknown field name
        """
        fields: Dict[str, Any] = {}
        for name, value in changes.items():
            key = _ALIASES.get(name, name)
            if key not in _FIELDS:
                raise KeyError(name)
            fields[key] = value

        with self._lock:
            position = self._check(index)
            current = self._records[position]
            if "category" in fields and "errors" not in fields:
                fields.update(_drop_stale_category_note(current, fields))
            updated = dataclasses.replace(current, **fields)
            self._records[position] = updated
            return copy.deepcopy(updated)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def _check(self, index: int) -> int:
        if not isinstance(index, int) or isinstance(index, bool):
            raise IndexError(f"record index must be an integer, got {index!r}")
        if index < 0 or index >= len(self._records):
            raise IndexError(f"no record at index {index}")
        return index
