from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from supabase import create_client, Client

from farm_importer import config
from farm_importer.errors import MissingCredentialError
from farm_importer.importer.contract import ExtractedRecord
from farm_importer.importer.materials import parse_materials

FARMS_TABLE = "farms"

_client: Optional[Client] = None

_DROP_RATE_COLON = re.compile(r"^(.+?)\s*:\s*(.+)$")
_DROP_RATE_TRAILING = re.compile(r"^(.+?)\s+(\d\S*(?:\s*\S+)?)$")


def _get_client() -> Client:
    """
    Lazily initialize the Supabase client; importing this module must work
    without Supabase configured.
    """
    global _client
    if _client is None:
        if not config.SUPABASE_URL or not config.SUPABASE_ANON_KEY:
            raise MissingCredentialError("SUPABASE_URL / SUPABASE_ANON_KEY are not set")
        _client = create_client(config.SUPABASE_URL, config.SUPABASE_ANON_KEY)
    return _client


@dataclass
class PublishResult:
    success: int = 0
    failed: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)

    def fail(self, index: int, title: str, errors: List[str]) -> None:
        self.failed += 1
        self.errors.append({"index": index, "title": title or "Untitled", "errors": errors})


# ================================
# ROW SHAPING
# ================================
def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def parse_drop_rates(text: str) -> List[Dict[str, str]]:
    """'Iron Ingot: 3600/hour; Poppy: 200' -> [{"item": ..., "rate": ...}, ...]"""
    rates = []
    for part in re.split(r"[;,]", text or ""):
        part = part.strip()
        if not part:
            continue
        match = _DROP_RATE_COLON.match(part) or _DROP_RATE_TRAILING.match(part)
        if match:
            rates.append({"item": match.group(1).strip(), "rate": match.group(2).strip()})
        else:
            rates.append({"item": part, "rate": ""})
    return rates


def build_farm_row(record: ExtractedRecord, author_id: str) -> Dict[str, Any]:
    materials = parse_materials(record.materials)
    optional = parse_materials(record.optional_materials)
    drop_rates = parse_drop_rates(record.drop_rate_per_hour)

    return {
        "title": record.title,
        "description": record.description,
        "category": record.category,
        "platform": list(record.platform),
        "versions": list(record.versions),
        "video_url": record.video_url or None,
        "materials": [m.to_dict() for m in materials.added],
        "optional_materials": [m.to_dict() for m in optional.added],
        "tags": list(record.tags),
        "farmable_items": list(record.farmable_items),
        "estimated_time": record.estimated_time,
        "required_biome": record.required_biome or None,
        "farm_designer": record.farm_designer or None,
        "notes": record.notes or None,
        "drop_rate_per_hour": drop_rates or None,
        "author_id": author_id,
        "public": True,
        "upvotes_count": 0,
        "slug": slugify(record.title),
    }


# ================================
# PUBLISH
# ================================
def slug_exists(client: Client, slug: str) -> bool:
    response = client.table(FARMS_TABLE).select("id").eq("slug", slug).execute()
    return bool(response.data)


def publish_records(
    records: Iterable[ExtractedRecord],
    author_id: str,
    client: Optional[Client] = None,
) -> PublishResult:
    """
    Insert reviewed records into the farms table, one row each.

    Records still flagged for review, empty titles and duplicate slugs are
    reported as failures; one failing row never stops the batch.
    """
    result = PublishResult()
    client = client or _get_client()

    for index, record in enumerate(records):
        if record.needs_review:
            result.fail(index, record.title, ["Record still needs review", *record.errors])
            continue

        slug = slugify(record.title)
        if not slug:
            result.fail(index, record.title, ["Title is required"])
            continue

        try:
            if slug_exists(client, slug):
                result.fail(index, record.title, ["A farm with this title already exists"])
                continue
            client.table(FARMS_TABLE).insert(build_farm_row(record, author_id)).execute()
            result.success += 1
        except Exception as e:  # noqa: BLE001
            logging.error("[SUPABASE ERROR %s] %s", FARMS_TABLE, e)
            result.fail(index, record.title, [str(e) or "Unknown error"])

    logging.info("[PUBLISH] %d inserted, %d failed", result.success, result.failed)
    return result
