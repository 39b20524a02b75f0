"""Spotify authorization-code flow with PKCE.

States::

    UNAUTHENTICATED --start_login--> PENDING_CALLBACK
    PENDING_CALLBACK --complete_login ok--> AUTHENTICATED
    PENDING_CALLBACK --complete_login error--> UNAUTHENTICATED
    AUTHENTICATED --expiry, refresh ok--> AUTHENTICATED
    AUTHENTICATED --expiry, refresh error--> UNAUTHENTICATED (forced logout)

The flow never sees the browser directly: ``start_login`` hands the
authorize URL to an ``open_browser`` callable and the CLI feeds the
callback parameters back into ``complete_login``.
"""

from __future__ import annotations
import base64
import enum
import hashlib
import logging
import secrets
import threading
import time
import webbrowser
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import requests

from ..errors import ExchangeFailed, MissingVerifier, RefreshFailed, StateMismatch
from ..models import Credential
from .token_store import TokenStore

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.spotify.com/authorize"
TOKEN_URL = "https://accounts.spotify.com/api/token"
EXPIRY_MARGIN_SECONDS = 5 * 60


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode().rstrip('=')


def _code_verifier(num_bytes: int = 32) -> str:
    # 32 random bytes -> 43 url-safe characters, within the 43..128 range RFC 7636 allows
    return _b64url(secrets.token_bytes(num_bytes))


def _code_challenge(verifier: str) -> str:
    return _b64url(hashlib.sha256(verifier.encode()).digest())


def _state_token() -> str:
    return _b64url(secrets.token_bytes(16))


class AuthState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    PENDING_CALLBACK = "pending_callback"
    AUTHENTICATED = "authenticated"


class AuthFlow:
    """Owns the credential lifecycle for a single user."""

    def __init__(
        self,
        client_id: str,
        store: TokenStore,
        scope: str = "user-library-read user-read-email user-read-private",
        redirect_port: int = 9876,
        redirect_path: str = "/callback",
        redirect_scheme: str = "http",
        redirect_host: str = "127.0.0.1",
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
        request_timeout: float = 30,
    ):
        self.client_id = client_id
        self.store = store
        self.scope = scope
        self.redirect_port = redirect_port
        if not redirect_path.startswith('/'):
            redirect_path = '/' + redirect_path
        self.redirect_path = redirect_path
        self.redirect_scheme = redirect_scheme
        self.redirect_host = redirect_host
        self.session = session
        self.clock = clock
        self.request_timeout = request_timeout
        self._refresh_lock = threading.Lock()
        self._logout_listeners: List[Callable[[], None]] = []

    def build_redirect_uri(self) -> str:
        return f"{self.redirect_scheme}://{self.redirect_host}:{self.redirect_port}{self.redirect_path}"

    @property
    def state(self) -> AuthState:
        if self.store.load_credential() is not None:
            return AuthState.AUTHENTICATED
        if self.store.pending_state():
            return AuthState.PENDING_CALLBACK
        return AuthState.UNAUTHENTICATED

    def on_logout(self, listener: Callable[[], None]) -> None:
        """Register a callback run after credentials are cleared."""
        self._logout_listeners.append(listener)

    # ---------------- Login -----------------
    def build_authorize_url(self, challenge: str, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "scope": self.scope,
            "redirect_uri": self.build_redirect_uri(),
            "code_challenge": challenge,
            "code_challenge_method": "S256",
            "state": state,
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    def start_login(self, open_browser: Callable[[str], Any] = webbrowser.open) -> str:
        """Persist a fresh verifier/state pair and send the user to Spotify.

        Returns:
            The authorize URL that was opened.
        """
        verifier = _code_verifier()
        state = _state_token()
        self.store.save_pending(verifier, state)
        url = self.build_authorize_url(_code_challenge(verifier), state)
        logger.debug(f"Opening browser to: {url}")
        open_browser(url)
        return url

    def complete_login(self, code: str, state: str | None) -> Credential:
        """Handle the redirect back from Spotify.

        Raises:
            StateMismatch: returned state differs from the persisted one
            MissingVerifier: no PKCE verifier was persisted
            ExchangeFailed: token endpoint rejected the code
        """
        try:
            expected_state = self.store.pending_state()
            if not expected_state or expected_state != state:
                raise StateMismatch()
            verifier = self.store.pending_verifier()
            if not verifier:
                raise MissingVerifier()
            data = {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.build_redirect_uri(),
                "client_id": self.client_id,
                "code_verifier": verifier,
            }
            logger.debug(f"Exchanging code for token at {TOKEN_URL}")
            payload = self._post_token(data, ExchangeFailed, "Token exchange failed")
            credential = Credential.from_token_response(payload, now=self.clock())
            self.store.save_credential(credential)
            logger.debug(f"Token acquired (expires_in={payload.get('expires_in')})")
            return credential
        finally:
            # Success or failure, the verifier/state pair is single use
            self.store.clear_pending()

    # ---------------- Token access -----------------
    def is_expired(self, credential: Credential) -> bool:
        if not credential.expires_at:
            return True
        return self.clock() >= credential.expires_at - EXPIRY_MARGIN_SECONDS

    def get_valid_token(self) -> Optional[str]:
        """Return a usable access token, refreshing when inside the expiry margin.

        Returns None when no credential exists or the refresh failed (in which
        case the user has been logged out). Never raises.
        """
        credential = self.store.load_credential()
        if credential is None:
            return None
        if not self.is_expired(credential):
            return credential.access_token
        try:
            return self.refresh().access_token
        except RefreshFailed as e:
            logger.error(f"Failed to refresh token: {e}")
            return None

    def refresh(self) -> Credential:
        """Exchange the refresh token for a new access token.

        Single-flight: a caller that finds a refresh already running waits for
        it and reuses the credential it stored.

        Raises:
            RefreshFailed: no refresh token, or the token endpoint rejected it.
                Credentials are cleared before raising.
        """
        with self._refresh_lock:
            credential = self.store.load_credential()
            if credential is not None and not self.is_expired(credential):
                return credential
            if credential is None or not credential.refresh_token:
                self.logout()
                raise RefreshFailed("No refresh token available. Please log in again.")
            data = {
                "grant_type": "refresh_token",
                "refresh_token": credential.refresh_token,
                "client_id": self.client_id,
            }
            try:
                payload = self._post_token(data, RefreshFailed, "Token refresh failed")
            except RefreshFailed:
                self.logout()
                raise
            refreshed = Credential.from_token_response(
                payload, now=self.clock(), previous_refresh=credential.refresh_token
            )
            self.store.save_credential(refreshed)
            logger.debug("Access token refreshed")
            return refreshed

    def logout(self) -> None:
        """Clear all persisted credential material and reset listeners' state."""
        self.store.clear_all()
        for listener in list(self._logout_listeners):
            listener()
        logger.info("Logged out")

    # ---------------- Helpers -----------------
    def _post_token(self, data: Dict[str, str], error_cls: type, prefix: str) -> Dict[str, Any]:
        http = self.session or requests
        try:
            resp = http.post(
                TOKEN_URL,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.request_timeout,
            )
        except requests.RequestException as e:
            raise error_cls(f"{prefix}: {e}") from e
        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        if not resp.ok:
            detail = (payload.get('error_description') or payload.get('error')) if isinstance(payload, dict) else None
            raise error_cls(detail or f"{prefix}: {resp.status_code}")
        if not isinstance(payload, dict) or 'access_token' not in payload:
            raise error_cls(f"{prefix}: response carried no access_token")
        if 'expires_in' in payload:
            try:
                int(payload['expires_in'])
            except (TypeError, ValueError):
                raise error_cls(f"{prefix}: invalid expires_in {payload['expires_in']!r}") from None
        return payload


__all__ = ["AuthFlow", "AuthState", "AUTH_URL", "TOKEN_URL", "EXPIRY_MARGIN_SECONDS"]
