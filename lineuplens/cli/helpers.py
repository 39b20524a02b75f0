from __future__ import annotations
import copy
from contextlib import contextmanager
from pathlib import Path

import click

from ..auth import AuthFlow, TokenStore
from ..catalog import CatalogLoader, FestivalRegistry
from ..config import load_typed_config
from ..config_types import AppConfig
from ..db import Cache
from ..errors import LineupLensError
from ..services import LineupService
from ..spotify import SpotifyAPIClient
from ..utils.logging_helpers import log_event
from ..version import __version__


def _redact_config(cfg: dict) -> dict:
    result = copy.deepcopy(cfg)
    spotify = result.get('spotify', {})
    if isinstance(spotify, dict) and spotify.get('client_id'):
        spotify['client_id'] = '*** redacted ***'
    return result


@click.group()
@click.version_option(version=__version__, prog_name="lineup-lens")
@click.pass_context
def cli(ctx: click.Context):
    """See which artists of a festival lineup you already love on Spotify.

    \b
    TYPICAL WORKFLOW:
      lineuplens login              # Authenticate with Spotify (opens browser)
      lineuplens festivals          # List configured lineups
      lineuplens match coachella    # Rank lineup artists by your liked songs

    \b
    Library:
      lineuplens pull               # Refresh cached liked songs
      lineuplens status             # Cache and token status

    \b
    Configuration via environment or .env, e.g.:
      LINEUPLENS__SPOTIFY__CLIENT_ID=<your app client id>
    """
    if not isinstance(ctx.obj, dict):
        ctx.obj = load_typed_config().to_dict()


@contextmanager
def cli_errors():
    """Report lineup-lens failures as click errors (exit code 1)."""
    try:
        yield
    except LineupLensError as e:
        raise click.ClickException(click.style(str(e), fg='red')) from e


def typed(cfg: dict) -> AppConfig:
    return AppConfig.from_dict(cfg)


def build_auth(cfg: dict) -> AuthFlow:
    """Build the PKCE auth flow from config.

    Raises:
        click.UsageError: client_id not configured
    """
    scfg = typed(cfg).spotify
    if not scfg.client_id:
        raise click.UsageError('spotify.client_id not configured (set LINEUPLENS__SPOTIFY__CLIENT_ID)')
    return AuthFlow(
        client_id=str(scfg.client_id),
        store=TokenStore(scfg.token_file, scfg.pending_file),
        scope=scfg.scope,
        redirect_port=int(scfg.redirect_port),
        redirect_path=scfg.redirect_path,
        redirect_scheme=scfg.redirect_scheme,
        redirect_host=scfg.redirect_host,
        request_timeout=scfg.request_timeout,
    )


def get_cache(cfg: dict) -> Cache:
    return Cache(Path(typed(cfg).cache.path))


def build_service(cfg: dict, open_cache: bool = True) -> LineupService:
    """Wire auth, client, cache and catalogs. Use as a context manager so the cache is closed."""
    app = typed(cfg)
    auth = build_auth(cfg)
    service = LineupService(
        auth=auth,
        client=SpotifyAPIClient(auth.get_valid_token, timeout=app.spotify.request_timeout),
        cache=get_cache(cfg) if open_cache else None,
        loader=CatalogLoader(timeout=app.spotify.request_timeout),
        registry=FestivalRegistry(app.catalogs),
        library_max_age_seconds=app.cache.library_max_age_seconds,
    )
    service.session.progress.subscribe(log_event)
    return service


__all__ = ["cli", "cli_errors", "build_auth", "build_service", "get_cache", "typed", "_redact_config"]
