# tests/conftest.py
import json
from types import SimpleNamespace

import pytest

from farm_importer.importer.contract import RawItem
from farm_importer.importer.session import get_session, reset_session


def farm_json(**overrides):
    """A well-formed model reply for one farm video."""
    data = {
        "title": "Iron Golem Farm",
        "description": "Efficient iron farm for Java edition.",
        "category": "Iron Farm",
        "platform": ["Java"],
        "versions": ["1.21"],
        "materials": "64 Cobbled Deepslate; 32 Glass; 16 Hopper",
        "optional_materials": "",
        "tags": ["iron-farm", "efficient"],
        "farmable_items": ["Iron Ingot", "Poppy"],
        "estimated_time": 120,
        "required_biome": "",
        "farm_designer": "ilmango",
        "drop_rate_per_hour": "Iron Ingot: 3600/hour",
        "notes": "Needs 3 villagers",
    }
    data.update(overrides)
    return json.dumps(data)


def make_item(n, **overrides):
    fields = {
        "video_id": f"vid{n}",
        "title": f"Farm video {n}",
        "description": f"Description of farm {n}",
        "channel_title": "ilmango",
        "published_at": "2024-06-01T00:00:00Z",
    }
    fields.update(overrides)
    return RawItem(**fields)


class FakeCompletions:
    """
    Stands in for client.chat.completions. Each reply is either a string
    (message content) or an Exception to raise.
    """

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0) if self.replies else RuntimeError("no reply queued")
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeOpenAI:
    def __init__(self, replies=()):
        self.chat = SimpleNamespace(completions=FakeCompletions(replies))

    @property
    def calls(self):
        return self.chat.completions.calls


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeHttp:
    """Replays playlistItems pages and records the params of each GET."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(dict(params or {}))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def playlist_entry(video_id, title="Farm", kind="youtube#video", **snippet):
    data = {
        "title": title,
        "description": f"About {title}",
        "channelTitle": "ilmango",
        "publishedAt": "2024-06-01T00:00:00Z",
        "resourceId": {"kind": kind, "videoId": video_id},
        "thumbnails": {"high": {"url": f"https://i.ytimg.com/vi/{video_id}/hq.jpg"}},
    }
    data.update(snippet)
    return {"snippet": data}


@pytest.fixture(autouse=True)
def fresh_session():
    """Each test starts with an empty in-memory session."""
    session = reset_session()
    yield session
    current = get_session()
    current.cancel()
    current.wait(5)
    reset_session()
