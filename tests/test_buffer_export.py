import csv
import io

import pytest

from farm_importer.importer.buffer import ReviewBuffer
from farm_importer.importer.contract import ExtractedRecord
from farm_importer.importer.exporter import EXPORT_COLUMNS, export_csv, export_filename

from conftest import make_item


def make_record(n, **overrides):
    fields = {
        "title": f"Farm {n}",
        "description": f"Description {n}",
        "category": "Iron Farm",
        "platform": ["Java", "Bedrock"],
        "versions": ["1.21", "1.20.6"],
        "video_url": make_item(n).url,
        "materials": "64 Glass; 16 Hopper",
        "tags": ["iron-farm", "afk"],
        "farmable_items": ["Iron Ingot"],
        "estimated_time": 90,
        "confidence": 0.8,
    }
    fields.update(overrides)
    return ExtractedRecord(**fields)


def filled_buffer(count=3):
    buffer = ReviewBuffer()
    for n in range(1, count + 1):
        buffer.append(make_record(n))
    return buffer


def read_rows(data):
    return list(csv.reader(io.StringIO(data.decode("utf-8"))))


# ---------------------------------------------------------------------------
# Review buffer
# ---------------------------------------------------------------------------

def test_update_changes_only_named_field():
    buffer = filled_buffer()
    before = buffer.records()

    buffer.update(1, category="Gold Farm")

    after = buffer.records()
    assert after[1].category == "Gold Farm"
    assert after[0] == before[0]
    assert after[2] == before[2]
    for name in ("title", "description", "platform", "versions", "video_url", "confidence", "errors"):
        assert getattr(after[1], name) == getattr(before[1], name)


def test_update_keeps_list_fields_as_lists():
    buffer = filled_buffer(1)
    record = buffer.update(0, tags="redstone", platform="Bedrock", needsReview=True)

    assert record.tags == ["redstone"]
    assert record.platform == ["Bedrock"]
    assert record.needs_review is True


def test_update_to_invalid_category_flags_review():
    buffer = filled_buffer(1)
    record = buffer.update(0, category="Banana Farm")

    assert record.needs_review is True
    assert record.errors == ["Invalid category: Banana Farm"]


def test_fixing_the_category_drops_its_note():
    buffer = ReviewBuffer()
    buffer.append(make_record(1, category="Super Farm"))

    record = buffer.update(0, category="Gold Farm")

    assert record.category == "Gold Farm"
    assert record.errors == []
    assert record.needs_review is False


def test_fixing_the_category_keeps_other_problems_flagged():
    buffer = ReviewBuffer()
    buffer.append(make_record(1, category="Super Farm", errors=["Schema validation failed: x"]))

    record = buffer.update(0, category="Gold Farm")

    assert record.errors == ["Schema validation failed: x"]
    assert record.needs_review is True


def test_fixing_the_category_respects_explicit_review_flag():
    buffer = ReviewBuffer()
    buffer.append(make_record(1, category="Super Farm"))

    record = buffer.update(0, category="Gold Farm", needsReview=True)

    assert record.errors == []
    assert record.needs_review is True


def test_update_unknown_field_or_index():
    buffer = filled_buffer(2)

    with pytest.raises(KeyError):
        buffer.update(0, colour="red")
    with pytest.raises(IndexError):
        buffer.update(2, title="nope")
    with pytest.raises(IndexError):
        buffer.update(-1, title="nope")


def test_records_returns_a_snapshot():
    buffer = filled_buffer(1)
    snapshot = buffer.records()
    snapshot[0].tags.append("mutated")

    assert buffer.get(0).tags == ["iron-farm", "afk"]


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def test_export_header_and_row_count():
    rows = read_rows(export_csv(filled_buffer(3).records()))

    assert tuple(rows[0]) == EXPORT_COLUMNS
    assert len(rows) == 4


def test_export_cells():
    record = make_record(1, estimated_time=None, required_biome="", notes="Needs villagers, 3 of them")
    header, row = read_rows(export_csv([record]))
    cells = dict(zip(header, row))

    assert cells["platform"] == "Java; Bedrock"
    assert cells["versions"] == "1.21; 1.20.6"
    assert cells["tags"] == "iron-farm; afk"
    assert cells["estimated_time"] == ""
    assert cells["required_biome"] == ""
    assert cells["notes"] == "Needs villagers, 3 of them"
    assert cells["video_url"] == "https://www.youtube.com/watch?v=vid1"


def test_export_is_idempotent():
    buffer = filled_buffer(3)
    assert export_csv(buffer.records()) == export_csv(buffer.records())


def test_edit_is_reflected_in_export():
    buffer = filled_buffer(3)
    buffer.update(1, category="Gold Farm")

    header, *rows = read_rows(export_csv(buffer.records()))
    column = header.index("category")

    assert [row[column] for row in rows] == ["Iron Farm", "Gold Farm", "Iron Farm"]


def test_export_empty_buffer_is_header_only():
    assert read_rows(export_csv([])) == [list(EXPORT_COLUMNS)]


def test_export_filename():
    assert export_filename("2024-06-01") == "youtube_farms_import_2024-06-01.csv"
    assert export_filename().startswith("youtube_farms_import_")
