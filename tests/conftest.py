"""Pytest fixtures for test configuration.

Global test safety measures:
 - Monkeypatch webbrowser.open to a no-op to guard against accidental flows
 - Keep LINEUPLENS__* variables from the developer's shell out of tests
"""
import os
import webbrowser
from pathlib import Path
from typing import Any, Dict

import pytest


def pytest_sessionstart(session):  # type: ignore[no-untyped-def]
    # Replace webbrowser.open to avoid launching windows if a login path is hit
    webbrowser.open = lambda *a, **k: True  # type: ignore[assignment]


# Expose mock fixtures (mock_cache, clock, token_store, make_auth, logged_in)
from tests.mocks.fixtures import *  # noqa: E402,F401,F403


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith('LINEUPLENS__'):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv('LINEUPLENS_ENABLE_DOTENV', raising=False)


@pytest.fixture
def test_config(tmp_path: Path) -> Dict[str, Any]:
    """Provide a minimal test configuration as a dict.

    Tests should pass cfg to CLI/modules directly (``CliRunner.invoke(..., obj=cfg)``)
    rather than creating config files or setting environment variables.
    All paths are isolated to tmp_path.
    """
    festivals_dir = tmp_path / 'festivals'
    festivals_dir.mkdir()
    return {
        'log_level': 'DEBUG',
        'spotify': {
            'client_id': 'test-client',
            'redirect_scheme': 'http',
            'redirect_host': '127.0.0.1',
            'redirect_port': 9876,
            'redirect_path': '/callback',
            'scope': 'user-library-read user-read-email user-read-private',
            'token_file': str(tmp_path / 'tokens.json'),
            'pending_file': str(tmp_path / 'pending_auth.json'),
            'timeout_seconds': 5,
            'request_timeout': 5,
        },
        'cache': {
            'path': str(tmp_path / 'lineuplens.db'),
            'library_max_age_seconds': 3600,
        },
        'catalogs': {
            'directory': str(festivals_dir),
            'festivals': {
                'testfest': {'csv': 'testfest.csv', 'name': 'Test Fest 2025', 'image': 'images/testfest.jpg'},
                'alphafest': {'csv': 'alpha.csv', 'name': 'alpha Fest', 'image': None},
            },
        },
        'matching': {'show_top': 0},
    }
