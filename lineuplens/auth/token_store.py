"""Scoped persistence for credential material.

Two key spaces back the auth flow:

- *durable*: the issued :class:`~lineuplens.models.Credential` (``token_file``)
- *transient*: PKCE verifier and anti-forgery state for an in-flight login
  (``pending_file``), cleared as soon as the callback is handled

Each scope is a small JSON document on disk. Reads and writes are best
effort: a corrupt or unreadable file behaves like an empty one.
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..models import Credential

logger = logging.getLogger(__name__)

CREDENTIAL_KEY = "credential"
VERIFIER_KEY = "pkce_verifier"
STATE_KEY = "oauth_state"


class JsonFileStore:
    """Key-value store persisted as one JSON object."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding='utf-8')
            logger.debug(f"Saved {self.path.resolve()}")
        except OSError as e:
            logger.warning(f"Failed to write {self.path}: {e}")

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        if self.path.exists():
            try:
                self.path.unlink()
            except OSError as e:
                logger.warning(f"Failed to remove {self.path}: {e}")


class TokenStore:
    """Holds, retrieves and clears credential material for one user."""

    def __init__(self, token_file: str | Path, pending_file: str | Path):
        self.durable = JsonFileStore(token_file)
        self.transient = JsonFileStore(pending_file)

    # ---------------- Credential (durable) -----------------
    def load_credential(self) -> Optional[Credential]:
        raw = self.durable.get(CREDENTIAL_KEY)
        if not isinstance(raw, dict) or not raw.get('access_token'):
            return None
        return Credential.from_dict(raw)

    def save_credential(self, credential: Credential) -> None:
        self.durable.set(CREDENTIAL_KEY, credential.to_dict())

    def clear_credential(self) -> None:
        self.durable.clear()

    # ---------------- In-flight login (transient) -----------------
    def save_pending(self, verifier: str, state: str) -> None:
        self.transient.set(VERIFIER_KEY, verifier)
        self.transient.set(STATE_KEY, state)

    def pending_verifier(self) -> Optional[str]:
        return self.transient.get(VERIFIER_KEY)

    def pending_state(self) -> Optional[str]:
        return self.transient.get(STATE_KEY)

    def clear_pending(self) -> None:
        self.transient.clear()

    def clear_all(self) -> None:
        self.clear_pending()
        self.clear_credential()


__all__ = ["JsonFileStore", "TokenStore"]
