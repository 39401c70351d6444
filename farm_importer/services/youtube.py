# farm_importer/services/youtube.py
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import requests

from farm_importer import config
from farm_importer.errors import PlaylistFetchError
from farm_importer.importer.contract import RawItem

PLAYLIST_ITEMS_URL = "https://www.googleapis.com/youtube/v3/playlistItems"
PAGE_SIZE = 50
PLAYABLE_KIND = "youtube#video"

_LIST_PARAM = re.compile(r"[?&]list=([a-zA-Z0-9_-]+)")
_BARE_ID = re.compile(r"^[a-zA-Z0-9_-]+$")


def extract_playlist_id(url: str) -> Optional[str]:
    """
    Pull the playlist id out of a YouTube URL.

    Accepts .../playlist?list=ID, .../watch?v=X&list=ID or a bare ID.
    """
    if not url:
        return None
    text = url.strip()

    match = _LIST_PARAM.search(text)
    if match:
        return match.group(1)
    if _BARE_ID.match(text):
        return text
    return None


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = {}
    error = body.get("error") if isinstance(body, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    return message or f"Failed to fetch playlist (HTTP {response.status_code})"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str:
    # present-but-null snippet fields come back as None
    return "" if value is None else str(value)


def parse_entry(entry: Dict[str, Any]) -> Optional[RawItem]:
    """
    Map one playlistItems entry to a RawItem, or None for non-video entries.
    """
    if not isinstance(entry, dict):
        return None
    snippet = entry.get("snippet")
    if not isinstance(snippet, dict):
        return None
    resource = snippet.get("resourceId")
    if not isinstance(resource, dict) or resource.get("kind") != PLAYABLE_KIND:
        return None

    thumbnails = _as_dict(snippet.get("thumbnails"))
    thumbnail = (
        _as_dict(thumbnails.get("high")).get("url")
        or _as_dict(thumbnails.get("default")).get("url")
        or ""
    )

    return RawItem(
        video_id=_text(resource.get("videoId")),
        title=_text(snippet.get("title")),
        description=_text(snippet.get("description")),
        channel_title=_text(snippet.get("channelTitle")),
        published_at=_text(snippet.get("publishedAt")),
        thumbnail=_text(thumbnail),
    )


def fetch_playlist_items(
    playlist_id: str,
    api_key: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> List[RawItem]:
    """
    Fetch every playable video of a playlist, following nextPageToken.

    Any failure aborts the whole fetch with PlaylistFetchError.
    """
    http = session or requests
    timeout = config.REQUEST_TIMEOUT_SECONDS if timeout is None else timeout

    items: List[RawItem] = []
    page_token: Optional[str] = None
    page = 0

    while True:
        params: Dict[str, Any] = {
            "part": "snippet",
            "playlistId": playlist_id,
            "maxResults": PAGE_SIZE,
            "key": api_key,
        }
        if page_token:
            params["pageToken"] = page_token

        try:
            response = http.get(PLAYLIST_ITEMS_URL, params=params, timeout=timeout)
        except requests.RequestException as e:
            logging.error("[YOUTUBE ERROR] %s", e)
            raise PlaylistFetchError(f"Failed to fetch playlist: {e}") from e

        if not response.ok:
            message = _error_message(response)
            logging.error("[YOUTUBE ERROR %s] %s", response.status_code, message)
            raise PlaylistFetchError(message)

        try:
            data = response.json()
        except ValueError as e:
            raise PlaylistFetchError("Playlist response was not valid JSON") from e
        if not isinstance(data, dict):
            logging.error("[YOUTUBE ERROR] unexpected body: %s", type(data).__name__)
            raise PlaylistFetchError("Playlist response was not valid JSON")

        page += 1
        entries = data.get("items")
        for entry in entries if isinstance(entries, list) else []:
            item = parse_entry(entry)
            if item is not None:
                items.append(item)

        page_token = data.get("nextPageToken")
        logging.info("[YOUTUBE] page %d fetched, %d videos so far", page, len(items))
        if not page_token:
            break

    return items
