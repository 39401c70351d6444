import pytest
import requests

from farm_importer.errors import PlaylistFetchError
from farm_importer.services.youtube import extract_playlist_id, fetch_playlist_items, parse_entry

from conftest import FakeHttp, FakeResponse, playlist_entry


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/playlist?list=PLabc_123-x", "PLabc_123-x"),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&list=PLxyz", "PLxyz"),
        ("PLbare_id", "PLbare_id"),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", None),
        ("not a playlist url", None),
        ("", None),
    ],
)
def test_extract_playlist_id(url, expected):
    assert extract_playlist_id(url) == expected


def test_parse_entry_skips_non_video_kinds():
    assert parse_entry(playlist_entry("c1", kind="youtube#channel")) is None


def test_parse_entry_builds_raw_item():
    item = parse_entry(playlist_entry("abc", title="Creeper Farm"))

    assert item.video_id == "abc"
    assert item.title == "Creeper Farm"
    assert item.channel_title == "ilmango"
    assert item.thumbnail == "https://i.ytimg.com/vi/abc/hq.jpg"
    assert item.url == "https://www.youtube.com/watch?v=abc"


def test_fetch_follows_page_tokens_in_order():
    http = FakeHttp([
        FakeResponse({
            "items": [playlist_entry("v1"), playlist_entry("x", kind="youtube#playlist"), playlist_entry("v2")],
            "nextPageToken": "PAGE2",
        }),
        FakeResponse({"items": [playlist_entry("v3")]}),
    ])

    items = fetch_playlist_items("PL1", "key", session=http)

    assert [i.video_id for i in items] == ["v1", "v2", "v3"]
    assert "pageToken" not in http.calls[0]
    assert http.calls[1]["pageToken"] == "PAGE2"
    assert http.calls[0]["maxResults"] == 50
    assert http.calls[0]["playlistId"] == "PL1"


def test_fetch_empty_playlist():
    http = FakeHttp([FakeResponse({"items": []})])
    assert fetch_playlist_items("PL1", "key", session=http) == []


def test_fetch_api_error_uses_api_message():
    http = FakeHttp([FakeResponse({"error": {"message": "API key not valid."}}, status_code=400)])

    with pytest.raises(PlaylistFetchError, match="API key not valid."):
        fetch_playlist_items("PL1", "bad", session=http)


def test_fetch_failure_on_later_page_returns_nothing():
    http = FakeHttp([
        FakeResponse({"items": [playlist_entry("v1")], "nextPageToken": "P2"}),
        requests.Timeout("read timed out"),
    ])

    with pytest.raises(PlaylistFetchError, match="read timed out"):
        fetch_playlist_items("PL1", "key", session=http)


def test_fetch_invalid_json_body():
    http = FakeHttp([FakeResponse(ValueError("not json"))])

    with pytest.raises(PlaylistFetchError):
        fetch_playlist_items("PL1", "key", session=http)


@pytest.mark.parametrize("body", [["not", "an", "object"], "text", 42, None])
def test_fetch_non_object_body(body):
    http = FakeHttp([FakeResponse(body)])

    with pytest.raises(PlaylistFetchError, match="not valid JSON"):
        fetch_playlist_items("PL1", "key", session=http)


def test_parse_entry_ignores_malformed_entries():
    assert parse_entry("v1") is None
    assert parse_entry({"snippet": "oops"}) is None
    assert parse_entry({"snippet": {"resourceId": ["youtube#video"]}}) is None


def test_parse_entry_null_fields_become_empty_text():
    entry = playlist_entry("abc", title=None, description=None, channelTitle=None, thumbnails=None)

    item = parse_entry(entry)

    assert item.title == ""
    assert item.description == ""
    assert item.channel_title == ""
    assert item.thumbnail == ""


def test_fetch_skips_garbage_entries():
    http = FakeHttp([FakeResponse({"items": [None, "x", playlist_entry("v1")]})])
    assert [i.video_id for i in fetch_playlist_items("PL1", "key", session=http)] == ["v1"]
