"""
CSV export of the review buffer.

Column order is fixed and matches the bulk-import template, so an exported
file can be fed straight back into the site's bulk importer.
"""

from __future__ import annotations

import csv
import io
from typing import Any, Iterable, List, Optional

from farm_importer.utils.time import today
from .contract import ExtractedRecord

EXPORT_COLUMNS = (
    "title",
    "description",
    "category",
    "platform",
    "versions",
    "video_url",
    "materials",
    "optional_materials",
    "tags",
    "farmable_items",
    "estimated_time",
    "required_biome",
    "farm_designer",
    "drop_rate_per_hour",
    "notes",
)

LIST_SEPARATOR = "; "
FILENAME_TEMPLATE = "youtube_farms_import_{date}.csv"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(str(v) for v in value)
    return str(value)


def record_row(record: ExtractedRecord) -> List[str]:
    return [_cell(getattr(record, column)) for column in EXPORT_COLUMNS]


def export_csv(records: Iterable[ExtractedRecord]) -> bytes:
    """
    Serialize records to UTF-8 CSV bytes: one header row, then one row per
    record in buffer order. Same input, same bytes.
    """
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\r\n")
    writer.writerow(EXPORT_COLUMNS)
    for record in records:
        writer.writerow(record_row(record))
    return out.getvalue().encode("utf-8")


def export_filename(date: Optional[str] = None) -> str:
    return FILENAME_TEMPLATE.format(date=date or today())
