from __future__ import annotations
import pytest

from lineuplens.auth import AuthFlow, TokenStore
from lineuplens.models import Credential, LibraryEntry
from .mock_cache import MockCache

# Valid 22-character artist IDs
ALPHA = "A" * 21 + "1"
BETA = "B" * 21 + "2"
GAMMA = "C" * 21 + "3"
ZETA = "Z" * 21 + "4"


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_entry(track_id: str, *artist_ids: str, synced_at: float = 0.0) -> LibraryEntry:
    return LibraryEntry(
        track_id=track_id,
        track_name=f"Song {track_id}",
        artist_ids=list(artist_ids),
        artist_names=[f"Artist {a[:4]}" for a in artist_ids],
        album_name="Album",
        added_at=None,
        synced_at=synced_at,
    )


@pytest.fixture
def mock_cache():
    return MockCache()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token_store(tmp_path):
    return TokenStore(tmp_path / 'tokens.json', tmp_path / 'pending.json')


@pytest.fixture
def make_auth(token_store, clock):
    """Factory for an AuthFlow bound to the temp token store and fake clock."""
    def factory(session=None) -> AuthFlow:
        return AuthFlow(client_id='client-123', store=token_store, session=session, clock=clock)
    return factory


@pytest.fixture
def logged_in(token_store, clock):
    """Store a credential valid for one hour."""
    credential = Credential(access_token='access-1', refresh_token='refresh-1', expires_at=clock.now + 3600)
    token_store.save_credential(credential)
    return credential
