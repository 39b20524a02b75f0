import base64
import hashlib
import threading
import time
from urllib.parse import parse_qs, urlparse

import pytest

from lineuplens.auth import AuthState
from lineuplens.auth.flow import EXPIRY_MARGIN_SECONDS, TOKEN_URL
from lineuplens.errors import ExchangeFailed, MissingVerifier, RefreshFailed, StateMismatch
from lineuplens.models import Credential
from tests.mocks.fake_http import FakeResponse, FakeSession


def _start(auth):
    opened = []
    url = auth.start_login(open_browser=opened.append)
    assert opened == [url]
    return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}


def test_authorize_url_carries_s256_challenge_of_stored_verifier(make_auth, token_store):
    auth = make_auth()
    params = _start(auth)
    verifier = token_store.pending_verifier()
    assert 43 <= len(verifier) <= 128
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).decode().rstrip('=')
    assert params['code_challenge'] == expected
    assert params['code_challenge_method'] == 'S256'
    assert params['response_type'] == 'code'
    assert params['client_id'] == 'client-123'
    assert params['redirect_uri'] == 'http://127.0.0.1:9876/callback'
    assert params['state'] == token_store.pending_state()
    assert auth.state is AuthState.PENDING_CALLBACK


def test_each_login_uses_fresh_verifier_and_state(make_auth, token_store):
    auth = make_auth()
    first = _start(auth)
    v1 = token_store.pending_verifier()
    second = _start(auth)
    assert first['state'] != second['state']
    assert token_store.pending_verifier() != v1


def test_complete_login_exchanges_code(make_auth, token_store, clock):
    session = FakeSession([FakeResponse(200, {
        'access_token': 'acc', 'refresh_token': 'ref', 'expires_in': 3600, 'token_type': 'Bearer',
    })])
    auth = make_auth(session)
    params = _start(auth)
    verifier = token_store.pending_verifier()

    credential = auth.complete_login('the-code', params['state'])

    assert credential.access_token == 'acc'
    assert credential.expires_at == clock.now + 3600
    call = session.calls[0]
    assert call['url'] == TOKEN_URL
    assert call['data']['grant_type'] == 'authorization_code'
    assert call['data']['code'] == 'the-code'
    assert call['data']['code_verifier'] == verifier
    assert call['headers']['Content-Type'] == 'application/x-www-form-urlencoded'
    # single-use material is gone, credential persisted
    assert token_store.pending_verifier() is None
    assert token_store.pending_state() is None
    assert token_store.load_credential() == credential
    assert auth.state is AuthState.AUTHENTICATED


def test_state_mismatch_rejected_without_exchange(make_auth, token_store):
    session = FakeSession()
    auth = make_auth(session)
    _start(auth)
    with pytest.raises(StateMismatch):
        auth.complete_login('code', 'forged')
    assert session.calls == []
    assert token_store.pending_state() is None
    assert token_store.load_credential() is None


def test_missing_state_rejected(make_auth):
    auth = make_auth(FakeSession())
    _start(auth)
    with pytest.raises(StateMismatch):
        auth.complete_login('code', None)


def test_missing_verifier(make_auth, token_store):
    session = FakeSession()
    auth = make_auth(session)
    params = _start(auth)
    token_store.transient.delete('pkce_verifier')
    with pytest.raises(MissingVerifier):
        auth.complete_login('code', params['state'])
    assert session.calls == []


def test_exchange_failure_uses_error_description(make_auth, token_store):
    session = FakeSession([FakeResponse(400, {'error': 'invalid_grant', 'error_description': 'Invalid authorization code'})])
    auth = make_auth(session)
    params = _start(auth)
    with pytest.raises(ExchangeFailed, match='Invalid authorization code'):
        auth.complete_login('bad', params['state'])
    assert token_store.load_credential() is None
    assert token_store.pending_verifier() is None


def test_exchange_failure_without_body_reports_status(make_auth):
    auth = make_auth(FakeSession([FakeResponse(500, text='oops')]))
    params = _start(auth)
    with pytest.raises(ExchangeFailed, match='500'):
        auth.complete_login('code', params['state'])


@pytest.mark.parametrize('offset, expired', [
    (EXPIRY_MARGIN_SECONDS + 0.001, False),
    (EXPIRY_MARGIN_SECONDS, True),
    (EXPIRY_MARGIN_SECONDS - 0.001, True),
])
def test_expiry_margin_boundary(make_auth, clock, offset, expired):
    auth = make_auth()
    assert auth.is_expired(Credential('a', 'r', clock.now + offset)) is expired


def test_missing_expires_at_counts_as_expired(make_auth):
    assert make_auth().is_expired(Credential('a', 'r', None)) is True


def test_get_valid_token_returns_stored_token(make_auth, logged_in):
    session = FakeSession()
    assert make_auth(session).get_valid_token() == 'access-1'
    assert session.calls == []


def test_get_valid_token_none_when_logged_out(make_auth):
    assert make_auth().get_valid_token() is None


def test_refresh_keeps_previous_refresh_token(make_auth, logged_in, clock, token_store):
    session = FakeSession([FakeResponse(200, {'access_token': 'access-2', 'expires_in': 3600})])
    auth = make_auth(session)
    clock.advance(3600 - EXPIRY_MARGIN_SECONDS)

    assert auth.get_valid_token() == 'access-2'
    stored = token_store.load_credential()
    assert stored.refresh_token == 'refresh-1'
    assert stored.expires_at == clock.now + 3600
    data = session.calls[0]['data']
    assert data == {'grant_type': 'refresh_token', 'refresh_token': 'refresh-1', 'client_id': 'client-123'}


def test_refresh_replaces_refresh_token_when_issued(make_auth, logged_in, clock, token_store):
    session = FakeSession([FakeResponse(200, {'access_token': 'access-2', 'refresh_token': 'refresh-2', 'expires_in': 60})])
    auth = make_auth(session)
    clock.advance(3600)
    auth.refresh()
    assert token_store.load_credential().refresh_token == 'refresh-2'


def test_refresh_failure_logs_out(make_auth, logged_in, clock, token_store):
    auth = make_auth(FakeSession([FakeResponse(400, {'error': 'invalid_grant'})]))
    reset = []
    auth.on_logout(lambda: reset.append(True))
    clock.advance(3600)

    assert auth.get_valid_token() is None
    assert token_store.load_credential() is None
    assert reset == [True]
    assert auth.state is AuthState.UNAUTHENTICATED


@pytest.mark.parametrize('expires_in', [None, 'soon'])
def test_refresh_with_unusable_expiry_logs_out(make_auth, logged_in, clock, token_store, expires_in):
    auth = make_auth(FakeSession([FakeResponse(200, {'access_token': 'access-2', 'expires_in': expires_in})]))
    clock.advance(3600)

    assert auth.get_valid_token() is None
    assert token_store.load_credential() is None


def test_exchange_with_unusable_expiry_fails(make_auth, token_store):
    auth = make_auth(FakeSession([FakeResponse(200, {'access_token': 'acc', 'expires_in': None})]))
    params = _start(auth)
    with pytest.raises(ExchangeFailed, match='expires_in'):
        auth.complete_login('code', params['state'])
    assert token_store.load_credential() is None


def test_refresh_without_refresh_token_raises(make_auth, token_store, clock):
    token_store.save_credential(Credential('a', None, clock.now - 1))
    auth = make_auth(FakeSession())
    with pytest.raises(RefreshFailed):
        auth.refresh()
    assert token_store.load_credential() is None


def test_concurrent_refresh_is_single_flight(make_auth, logged_in, clock):
    class SlowSession(FakeSession):
        def post(self, url, **kwargs):
            time.sleep(0.1)
            return super().post(url, **kwargs)

    session = SlowSession([FakeResponse(200, {'access_token': 'access-2', 'expires_in': 3600})])
    auth = make_auth(session)
    clock.advance(3600)

    tokens = []
    threads = [threading.Thread(target=lambda: tokens.append(auth.get_valid_token())) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert tokens == ['access-2'] * 4
    assert len(session.calls) == 1


def test_logout_clears_everything(make_auth, logged_in, token_store):
    auth = make_auth()
    _start(auth)
    auth.logout()
    assert token_store.load_credential() is None
    assert token_store.pending_state() is None
    assert auth.state is AuthState.UNAUTHENTICATED


def test_redirect_path_normalized(token_store):
    from lineuplens.auth import AuthFlow
    auth = AuthFlow(client_id='dummy', store=token_store, redirect_port=5555, redirect_path='cb', redirect_host='localhost')
    assert auth.build_redirect_uri() == 'http://localhost:5555/cb'
