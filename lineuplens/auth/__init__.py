"""Spotify authentication package.

- token_store.py: scoped JSON persistence for credentials and in-flight login values
- flow.py: PKCE authorization-code flow, refresh and logout
- callback_server.py: loopback server receiving the OAuth redirect
"""

from .token_store import TokenStore, JsonFileStore
from .flow import AuthFlow, AuthState
from .callback_server import CallbackListener, CallbackResult, parse_callback_url

__all__ = [
    "TokenStore",
    "JsonFileStore",
    "AuthFlow",
    "AuthState",
    "CallbackListener",
    "CallbackResult",
    "parse_callback_url",
]
