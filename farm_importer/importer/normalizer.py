from __future__ import annotations

import logging
import math
import re
from typing import Any, Dict, List, Optional

from farm_importer.taxonomy import (
    DEFAULT_DESCRIPTION,
    DEFAULT_PLATFORM,
    DEFAULT_VERSION,
    PLATFORMS,
)

LIST_FIELDS = ("platform", "versions", "tags", "farmable_items")
TEXT_FIELDS = (
    "materials",
    "optional_materials",
    "required_biome",
    "drop_rate_per_hour",
    "notes",
)

_LEADING_INT = re.compile(r"^\s*(-?\d+)")

NUMERIC_VERSION_NOTE = "Version was given as a number, check it: {value}"


def as_list(value: Any) -> List[str]:
    """
    Coerce a model value into a list of non-empty strings.

    "Java"              -> ["Java"]
    ["Java", "", None]  -> ["Java"]
    None / "" / {}      -> []
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        items = list(value)
    elif isinstance(value, dict):
        return []
    else:
        items = [value]

    out: List[str] = []
    for item in items:
        if item is None or isinstance(item, (dict, list)):
            continue
        text = str(item).strip()
        if text:
            out.append(text)
    return out


def as_int(value: Any) -> Optional[int]:
    """
    Best-effort non-negative integer parse. Anything else becomes None.

    120 -> 120, "90 minutes" -> 90, 45.7 -> 45, "about an hour" -> None
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        number = int(value)
    else:
        match = _LEADING_INT.match(str(value))
        if not match:
            return None
        number = int(match.group(1))
    return number if number >= 0 else None


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "; ".join(as_list(value))
    return str(value).strip()


def canonical_platforms(values: List[str]) -> List[str]:
    """Fix the casing of known platform tags and drop repeats; unknown tags are kept."""
    known = {p.lower(): p for p in PLATFORMS}
    out: List[str] = []
    for value in values:
        tag = known.get(value.lower(), value)
        if tag not in out:
            out.append(tag)
    return out


def numeric_versions(value: Any) -> List[Any]:
    """
    Versions the model sent as JSON numbers. 1.20 decodes to 1.2, so the
    text form may have lost a trailing zero.
    """
    items = value if isinstance(value, (list, tuple)) else [value]
    return [v for v in items if isinstance(v, (int, float)) and not isinstance(v, bool)]


def normalize_fields(raw: Dict[str, Any], *, title: str, channel_title: str) -> Dict[str, Any]:
    """
    Turn a decoded model object into ExtractedRecord keyword arguments.

    Missing or malformed values get type-appropriate defaults; the video's
    own title and channel fill the gaps the model leaves.
    """
    fields: Dict[str, Any] = {
        "title": as_text(raw.get("title")) or title,
        "description": as_text(raw.get("description")) or DEFAULT_DESCRIPTION,
        "category": as_text(raw.get("category")),
        "estimated_time": as_int(raw.get("estimated_time")),
        "farm_designer": as_text(raw.get("farm_designer")) or channel_title,
    }

    for name in LIST_FIELDS:
        fields[name] = as_list(raw.get(name))
    for name in TEXT_FIELDS:
        fields[name] = as_text(raw.get(name))

    fields["platform"] = canonical_platforms(fields["platform"])
    if not fields["platform"]:
        fields["platform"] = [DEFAULT_PLATFORM]
    if not fields["versions"]:
        fields["versions"] = [DEFAULT_VERSION]

    numeric = numeric_versions(raw.get("versions"))
    if numeric:
        logging.warning("[NORMALIZE] numeric versions from model: %s", numeric)
        fields["errors"] = [NUMERIC_VERSION_NOTE.format(value=v) for v in numeric]
        fields["needs_review"] = True

    return fields
