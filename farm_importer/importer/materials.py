from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

# "93 Cobbled Deepslate"
_COUNT_FIRST = re.compile(r"^(\d+)\s+(.+)$")
# "Cobbled Deepslate x93" / "Cobbled Deepslate x 93"
_COUNT_SUFFIX = re.compile(r"^(.+?)\s+x\s*(\d+)$", re.IGNORECASE)
# "93x Cobbled Deepslate"
_COUNT_PREFIX_X = re.compile(r"^(\d+)x\s+(.+)$", re.IGNORECASE)
# "Cobbled Deepslate: 93"
_COUNT_COLON = re.compile(r"^(.+?)\s*:\s*(\d+)$")

_SPLIT = re.compile(r"[;,\n]")


@dataclass
class ParsedMaterial:
    name: str
    count: int

    def to_dict(self) -> dict:
        return {"name": self.name, "count": self.count}


@dataclass
class MaterialParseResult:
    added: List[ParsedMaterial] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


def _parse_line(line: str) -> Optional[Tuple[int, str]]:
    match = _COUNT_PREFIX_X.match(line) or _COUNT_FIRST.match(line)
    if match:
        return int(match.group(1)), match.group(2).strip()

    match = _COUNT_SUFFIX.match(line) or _COUNT_COLON.match(line)
    if match:
        return int(match.group(2)), match.group(1).strip()

    return None


def parse_materials(text: str) -> MaterialParseResult:
    """
    Parse free-text material lists into name/count pairs.

    Entries are separated by semicolons, commas or newlines. Entries that
    match no known pattern, or have a zero count, end up in `failed`.
    Repeated names are merged by summing their counts.
    """
    result = MaterialParseResult()
    if not text or not text.strip():
        return result

    by_name = {}
    for raw in _SPLIT.split(text):
        line = raw.strip()
        if not line:
            continue

        parsed = _parse_line(line)
        if parsed is None or parsed[0] <= 0 or not parsed[1]:
            result.failed.append(line)
            continue

        count, name = parsed
        if name in by_name:
            by_name[name].count += count
        else:
            material = ParsedMaterial(name=name, count=count)
            by_name[name] = material
            result.added.append(material)

    return result
