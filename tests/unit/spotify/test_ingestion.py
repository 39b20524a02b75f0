from lineuplens.spotify import build_library, parse_added_at
from tests.mocks.fake_http import saved_track


def test_parse_added_at():
    assert parse_added_at('1970-01-01T00:01:00Z') == 60.0
    assert parse_added_at(None) is None
    assert parse_added_at('yesterday') is None


def test_build_library_keeps_order_and_artist_ids():
    items = [
        saved_track('t1', [('a1', 'One'), ('a2', 'Two')], name='Duet'),
        saved_track('t2', [('a2', 'Two')]),
    ]
    entries = build_library(items, synced_at=42.0)
    assert [e.track_id for e in entries] == ['t1', 't2']
    assert entries[0].artist_ids == ['a1', 'a2']
    assert entries[0].artist_names == ['One', 'Two']
    assert entries[0].track_name == 'Duet'
    assert entries[0].album_name == 'Stub Album'
    assert {e.synced_at for e in entries} == {42.0}


def test_items_without_track_id_dropped():
    local_file = {'added_at': '2025-01-01T00:00:00Z', 'track': {'id': None, 'name': 'Local', 'artists': []}}
    entries = build_library([local_file, {'track': None}, saved_track('t1', [('a1', 'One')])], synced_at=1.0)
    assert [e.track_id for e in entries] == ['t1']


def test_artists_without_id_skipped():
    item = saved_track('t1', [('a1', 'One')])
    item['track']['artists'].append({'id': None, 'name': 'Ghost'})
    entry = build_library([item], synced_at=1.0)[0]
    assert entry.artist_ids == ['a1']
    assert entry.artist_names == ['One']
