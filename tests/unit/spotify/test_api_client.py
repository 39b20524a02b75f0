import pytest
import requests

from lineuplens.errors import Forbidden, GenericApiError, ServerError, Unauthenticated
from lineuplens.spotify import SpotifyAPIClient
from lineuplens.spotify.client import API_BASE, parse_retry_after
from tests.mocks.fake_http import FakeResponse, FakeSession, saved_track, saved_tracks_page


def _client(session, token='tok'):
    sleeps = []
    client = SpotifyAPIClient(token, session=session, sleep=sleeps.append)
    return client, sleeps


def test_bearer_header_and_profile():
    session = FakeSession([FakeResponse(200, {'id': 'u1', 'display_name': 'User One'})])
    client, _ = _client(session)
    assert client.current_user_profile()['display_name'] == 'User One'
    call = session.calls[0]
    assert call['url'] == f'{API_BASE}/me'
    assert call['headers']['Authorization'] == 'Bearer tok'


def test_token_callable_is_consulted_per_request():
    tokens = iter(['t1', 't2'])
    session = FakeSession([FakeResponse(200, {}), FakeResponse(200, {})])
    client, _ = _client(session, token=lambda: next(tokens))
    client.request('/me')
    client.request('/me')
    assert [c['headers']['Authorization'] for c in session.calls] == ['Bearer t1', 'Bearer t2']


def test_no_token_is_unauthenticated():
    client, _ = _client(FakeSession(), token=lambda: None)
    with pytest.raises(Unauthenticated):
        client.request('/me')


def test_rate_limit_waits_retry_after_then_returns_response():
    body = {'id': 'u1'}
    session = FakeSession([
        FakeResponse(429, headers={'Retry-After': '2'}),
        FakeResponse(200, body),
    ])
    client, sleeps = _client(session)
    assert client.request('/me') == body
    assert sleeps == [2.0]
    assert len(session.calls) == 2
    assert session.calls[0]['url'] == session.calls[1]['url']


def test_rate_limit_defaults_to_three_seconds():
    session = FakeSession([
        FakeResponse(429),
        FakeResponse(429, headers={'Retry-After': 'soon'}),
        FakeResponse(200, {'ok': True}),
    ])
    client, sleeps = _client(session)
    assert client.request('/me') == {'ok': True}
    assert sleeps == [3.0, 3.0]


@pytest.mark.parametrize('value, expected', [(None, 3), ('5', 5), (' 1 ', 1), ('x', 3), ('-4', 0)])
def test_parse_retry_after(value, expected):
    assert parse_retry_after(value) == expected


@pytest.mark.parametrize('status, exc, message', [
    (401, Unauthenticated, 'Authentication failed. Please log in again.'),
    (403, Forbidden, 'Access forbidden. Please check your permissions.'),
    (500, ServerError, 'Spotify API error (500). Please try again later.'),
    (503, ServerError, 'Spotify API error (503). Please try again later.'),
])
def test_status_mapping(status, exc, message):
    client, sleeps = _client(FakeSession([FakeResponse(status)]))
    with pytest.raises(exc) as info:
        client.request('/me')
    assert str(info.value) == message
    assert info.value.status == status
    assert sleeps == []


def test_other_error_uses_body_message():
    session = FakeSession([FakeResponse(404, {'error': {'status': 404, 'message': 'Non existing id'}})])
    client, _ = _client(session)
    with pytest.raises(GenericApiError, match='Non existing id') as info:
        client.request('/artists/x')
    assert info.value.status == 404


def test_other_error_without_body():
    client, _ = _client(FakeSession([FakeResponse(400, reason='Bad Request')]))
    with pytest.raises(GenericApiError, match='API Error: 400 Bad Request'):
        client.request('/me')


def test_transport_failure_is_api_error():
    client, _ = _client(FakeSession([requests.ConnectionError('boom')]))
    with pytest.raises(GenericApiError, match='boom'):
        client.request('/me')


def test_fetch_all_pages_follows_next_and_reports_progress():
    first = [saved_track(f't{i}', [('a1', 'A')]) for i in range(50)]
    second = [saved_track('t50', [('a1', 'A')])]
    session = FakeSession([
        FakeResponse(200, saved_tracks_page(first, 51, f'{API_BASE}/me/tracks?offset=50&limit=50')),
        FakeResponse(200, saved_tracks_page(second, 51, None)),
    ])
    client, _ = _client(session)
    progress = []

    items = client.fetch_all_library_pages(on_progress=lambda n, total: progress.append((n, total)))

    assert len(items) == 51
    assert [i['track']['id'] for i in items][:2] == ['t0', 't1']
    assert progress == [(50, 51), (51, 51)]
    assert session.calls[0]['url'] == f'{API_BASE}/me/tracks?limit=50'
    assert session.calls[1]['url'].endswith('offset=50&limit=50')


def test_fetch_aborts_on_mid_pagination_error():
    session = FakeSession([
        FakeResponse(200, saved_tracks_page([saved_track('t1', [('a1', 'A')])], 100, f'{API_BASE}/me/tracks?offset=50')),
        FakeResponse(502),
    ])
    client, _ = _client(session)
    with pytest.raises(ServerError):
        client.fetch_all_library_pages()


def test_rate_limit_mid_pagination_resumes_same_page():
    next_url = f'{API_BASE}/me/tracks?offset=50'
    session = FakeSession([
        FakeResponse(200, saved_tracks_page([saved_track('t1', [('a1', 'A')])], 2, next_url)),
        FakeResponse(429, headers={'Retry-After': '1'}),
        FakeResponse(200, saved_tracks_page([saved_track('t2', [('a1', 'A')])], 2, None)),
    ])
    client, sleeps = _client(session)
    items = client.fetch_all_library_pages()
    assert [i['track']['id'] for i in items] == ['t1', 't2']
    assert sleeps == [1.0]
    assert session.calls[1]['url'] == session.calls[2]['url'] == next_url
