"""Spotify API client.

Handles all HTTP requests to Spotify Web API endpoints: bearer auth,
rate-limit backoff, typed error mapping and saved-track pagination.
"""

from __future__ import annotations
import logging
import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

import requests
from tenacity import Retrying, retry_if_exception_type, stop_never

from ..errors import (
    Forbidden,
    GenericApiError,
    RateLimited,
    ServerError,
    Unauthenticated,
)

logger = logging.getLogger(__name__)
API_BASE = "https://api.spotify.com/v1"
LIBRARY_PAGE_SIZE = 50
DEFAULT_RETRY_AFTER = 3

TokenSource = Union[str, Callable[[], Optional[str]]]
ProgressCallback = Callable[[int, int], None]


def parse_retry_after(value: str | None) -> int:
    """Seconds to wait from a Retry-After header (default 3 when absent/unparseable)."""
    if value is None:
        return DEFAULT_RETRY_AFTER
    try:
        return max(0, int(value.strip()))
    except ValueError:
        return DEFAULT_RETRY_AFTER


def _wait_retry_after(retry_state) -> float:
    exc = retry_state.outcome.exception()
    return float(getattr(exc, 'retry_after', DEFAULT_RETRY_AFTER))


def _log_rate_limit(retry_state) -> None:
    logger.warning(
        f"Rate limited. Waiting {retry_state.next_action.sleep:.0f} seconds "
        f"(attempt {retry_state.attempt_number})..."
    )


def _error_message(resp: requests.Response) -> str:
    message = f"API Error: {resp.status_code} {resp.reason or ''}".strip()
    try:
        body = resp.json()
    except ValueError:
        return message
    if isinstance(body, dict):
        err = body.get('error')
        if isinstance(err, dict) and err.get('message'):
            return err['message']
        if body.get('error_description'):
            return body['error_description']
    return message


class SpotifyAPIClient:
    """Spotify Web API client.

    Requests are strictly sequential. A 429 response suspends for the
    server-provided ``Retry-After`` and reissues the identical request, with
    no cap on the number of retries.
    """

    def __init__(
        self,
        token: TokenSource,
        session: requests.Session | None = None,
        timeout: float = 30,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize client.

        Args:
            token: Access token, or a callable returning one (e.g.
                ``AuthFlow.get_valid_token``) so refreshed tokens are picked up
            session: Optional requests session (connection reuse, tests)
            timeout: Per-request timeout in seconds
            sleep: Backoff sleep function
        """
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout
        self._sleep = sleep

    def _access_token(self) -> str:
        token = self.token() if callable(self.token) else self.token
        if not token:
            raise Unauthenticated("Access token required. Please log in.")
        return token

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token()}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _url(endpoint: str) -> str:
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return API_BASE + (endpoint if endpoint.startswith('/') else '/' + endpoint)

    def _send(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        headers = {**self._headers(), **kwargs.pop('headers', {})}
        try:
            r = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise GenericApiError(f"Request to {url} failed: {e}") from e
        if r.status_code == 429:
            raise RateLimited(parse_retry_after(r.headers.get("Retry-After")))
        if r.status_code == 401:
            raise Unauthenticated()
        if r.status_code == 403:
            raise Forbidden()
        if r.status_code >= 500:
            raise ServerError(r.status_code)
        if not 200 <= r.status_code < 300:
            raise GenericApiError(_error_message(r), status=r.status_code)
        if not r.content:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise GenericApiError(f"Invalid JSON from {url}") from e

    def request(self, endpoint: str, method: str = "GET", **kwargs: Any) -> Dict[str, Any]:
        """Execute an authenticated request, waiting out rate limits.

        Args:
            endpoint: Path below the API base (e.g. '/me') or an absolute URL
            method: HTTP method
            **kwargs: Passed through to ``requests.Session.request``

        Returns:
            JSON response as dict ({} for empty bodies)

        Raises:
            Unauthenticated: 401 or no token available
            Forbidden: 403
            ServerError: 5xx
            GenericApiError: any other failure
        """
        retrying = Retrying(
            retry=retry_if_exception_type(RateLimited),
            wait=_wait_retry_after,
            stop=stop_never,
            sleep=self._sleep,
            before_sleep=_log_rate_limit,
            reraise=True,
        )
        return retrying(self._send, method, self._url(endpoint), **kwargs)

    def current_user_profile(self) -> Dict[str, Any]:
        """Get current user's profile information (id, display_name, ...)."""
        return self.request("/me")

    def iter_library_pages(self) -> Iterator[Dict[str, Any]]:
        """Yield each page of the saved-tracks listing, following ``next`` links."""
        next_url: Optional[str] = f"{API_BASE}/me/tracks?limit={LIBRARY_PAGE_SIZE}"
        while next_url:
            page = self.request(next_url)
            yield page
            next_url = page.get('next')

    def fetch_all_library_pages(self, on_progress: ProgressCallback | None = None) -> List[Dict[str, Any]]:
        """Fetch all liked (saved) tracks for the current user.

        Args:
            on_progress: Called with (fetched_count, total_count) after each page

        Returns:
            Raw track item dicts with 'track' and 'added_at'. Any request
            failure aborts the fetch; partial results are not returned.
        """
        items: List[Dict[str, Any]] = []
        for page in self.iter_library_pages():
            page_items = page.get('items') or []
            items.extend(page_items)
            total = int(page.get('total') or len(items))
            logger.debug(f"Fetched {len(page_items)} liked tracks ({len(items)}/{total})")
            if on_progress:
                on_progress(len(items), total)
        return items


__all__ = ["SpotifyAPIClient", "API_BASE", "LIBRARY_PAGE_SIZE", "parse_retry_after"]
