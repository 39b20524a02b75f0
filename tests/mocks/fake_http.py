from __future__ import annotations
"""Scripted stand-ins for ``requests`` sessions (no network).

``FakeSession`` replays queued ``FakeResponse`` objects in order and records
every call so tests can assert on URLs, headers and form data.
"""
import json
from typing import Any, Dict, List, Optional


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, headers: Optional[Dict[str, str]] = None,
                 text: str | None = None, reason: str = ""):
        self.status_code = status_code
        self.headers = headers or {}
        self.reason = reason
        if text is not None:
            self.content = text.encode('utf-8')
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode('utf-8')

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    @property
    def text(self) -> str:
        return self.content.decode('utf-8')

    def json(self):
        return json.loads(self.content.decode('utf-8'))


class FakeSession:
    def __init__(self, responses: List[FakeResponse] | None = None):
        self.responses = list(responses or [])
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *responses: FakeResponse) -> "FakeSession":
        self.responses.extend(responses)
        return self

    def _next(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({'method': method, 'url': url, **kwargs})
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {url}")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        return self._next(method, url, **kwargs)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next('GET', url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self._next('POST', url, **kwargs)


def saved_tracks_page(items: List[Dict[str, Any]], total: int, next_url: str | None = None) -> Dict[str, Any]:
    return {'items': items, 'total': total, 'next': next_url, 'limit': 50}


def saved_track(track_id: str, artists: List[tuple], added_at: str = '2025-01-01T00:00:00Z', name: str | None = None) -> Dict[str, Any]:
    """Build a saved-track item; ``artists`` is a list of (id, name) pairs."""
    return {
        'added_at': added_at,
        'track': {
            'id': track_id,
            'name': name or f"Song {track_id}",
            'artists': [{'id': aid, 'name': aname} for aid, aname in artists],
            'album': {'name': 'Stub Album'},
        },
    }
