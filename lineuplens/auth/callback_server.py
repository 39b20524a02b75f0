"""Loopback HTTP server that receives the OAuth redirect.

Spotify redirects the browser to ``redirect_uri?code=...&state=...``; the
server records the query parameters so the CLI can hand them to
``AuthFlow.complete_login``.
"""

from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Optional
from urllib.parse import urlparse, parse_qs

logger = logging.getLogger(__name__)


@dataclass
class CallbackResult:
    code: Optional[str] = None
    state: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


def parse_callback_url(url: str) -> CallbackResult:
    """Extract code/state/error from a redirect URL (for manual paste)."""
    qs = parse_qs(urlparse(url).query)
    return CallbackResult(
        code=qs.get('code', [None])[0],
        state=qs.get('state', [None])[0],
        error=qs.get('error', [None])[0],
        error_description=qs.get('error_description', [None])[0],
    )


class OAuthServer(HTTPServer):
    def __init__(self, server_address, RequestHandlerClass, callback_path: str = "/callback"):
        super().__init__(server_address, RequestHandlerClass)
        self.callback_path = callback_path
        self.result = CallbackResult()
        self.received = threading.Event()


class OAuthHandler(BaseHTTPRequestHandler):
    def do_GET(self):  # type: ignore[override]
        parsed = urlparse(self.path)
        server: OAuthServer = self.server  # type: ignore[assignment]
        # Browsers also ask for /favicon.ico; only the callback path counts
        if parsed.path != server.callback_path:
            self.send_response(404)
            self.end_headers()
            return
        result = parse_callback_url(self.path)
        if result.code is not None or result.error is not None:
            server.result = result
            server.received.set()
        logger.debug(f"Callback received path={parsed.path} error={result.error}")
        self.send_response(200)
        self.send_header('Content-Type', 'text/plain')
        self.end_headers()
        if result.error:
            self.wfile.write(b"Authorization failed. You may close this window.")
        else:
            self.wfile.write(b"LineupLens is authorized. You may close this window.")

    def log_message(self, format, *args):  # silence default logging
        return


class CallbackListener:
    """Run an :class:`OAuthServer` in a daemon thread until a callback arrives.

    Start it *before* opening the browser so the redirect cannot race the bind.
    """

    def __init__(self, host: str, port: int, path: str = "/callback"):
        self.server = OAuthServer((host, port), OAuthHandler, callback_path=path)
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)

    @property
    def port(self) -> int:
        return self.server.server_address[1]

    def start(self) -> "CallbackListener":
        self._thread.start()
        logger.debug(f"Local server started on port {self.port}, waiting for authorization code...")
        return self

    def wait(self, timeout_seconds: float) -> CallbackResult:
        """Block until the redirect arrives.

        Raises:
            TimeoutError: nothing arrived within ``timeout_seconds``
        """
        start = time.time()
        try:
            if not self.server.received.wait(timeout_seconds):
                raise TimeoutError(f"Authorization timeout expired after {time.time() - start:.0f}s.")
            return self.server.result
        finally:
            self.stop()

    def stop(self) -> None:
        if self._thread.is_alive():
            self.server.shutdown()
        self.server.server_close()


__all__ = ["CallbackResult", "CallbackListener", "OAuthServer", "OAuthHandler", "parse_callback_url"]
