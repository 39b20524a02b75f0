"""Authentication commands: login, logout, whoami, token-info, redirect-uri."""

from __future__ import annotations
import logging
import time
import webbrowser

import click

from ..auth import CallbackListener, parse_callback_url
from ..models import Credential
from .helpers import cli, cli_errors, build_auth, build_service, typed

logger = logging.getLogger(__name__)


@cli.command()
@click.option('--no-browser', is_flag=True, help='Print the authorization URL instead of opening a browser')
@click.option('--manual', is_flag=True, help='Paste the redirect URL instead of running the local callback server')
@click.pass_context
def login(ctx: click.Context, no_browser: bool, manual: bool):
    """Authenticate with Spotify (authorization code + PKCE)."""
    cfg = ctx.obj
    scfg = typed(cfg).spotify
    with build_service(cfg, open_cache=False) as service:
        _login(service, scfg, no_browser, manual)


def _login(service, scfg, no_browser: bool, manual: bool) -> None:
    auth = service.auth

    def show_url(url: str) -> None:
        click.echo("Open this URL in your browser to authorize LineupLens:")
        click.echo(click.style(url, fg='cyan'))

    opener = show_url if (no_browser or manual) else webbrowser.open

    with cli_errors():
        if manual:
            auth.start_login(open_browser=opener)
            redirected = click.prompt("Paste the full URL you were redirected to")
            result = parse_callback_url(redirected)
        else:
            # Bind before the browser opens so the redirect cannot arrive first
            listener = CallbackListener(scfg.redirect_host, int(scfg.redirect_port), auth.redirect_path).start()
            try:
                auth.start_login(open_browser=opener)
            except Exception:
                listener.stop()
                raise
            click.echo(f"Waiting for Spotify to redirect to {auth.build_redirect_uri()} ...")
            try:
                result = listener.wait(scfg.timeout_seconds)
            except TimeoutError as e:
                auth.store.clear_pending()
                raise click.ClickException(str(e)) from e

        if result.error:
            auth.store.clear_pending()
            raise click.ClickException(
                f"Spotify authorization error: {result.error} {result.error_description or ''}".strip()
            )
        if not result.code:
            auth.store.clear_pending()
            raise click.ClickException("No authorization code in callback")
        auth.complete_login(result.code, result.state)
        user = service.fetch_profile()

    click.echo(click.style(f"✓ Logged in as {service.session.display_name}", fg='green'))
    logger.debug(f"User id: {user.get('id')}")


@cli.command()
@click.option('--clear-cache', is_flag=True, help='Also delete cached liked songs and lineups')
@click.pass_context
def logout(ctx: click.Context, clear_cache: bool):
    """Forget stored Spotify credentials."""
    with build_service(ctx.obj, open_cache=clear_cache) as service:
        service.logout(clear_cache=clear_cache)
    click.echo("Logged out" + (" (cache cleared)" if clear_cache else ""))


@cli.command()
@click.pass_context
def whoami(ctx: click.Context):
    """Show the Spotify account currently logged in."""
    with build_service(ctx.obj, open_cache=False) as service, cli_errors():
        user = service.fetch_profile()
    click.echo(f"{service.session.display_name} ({user.get('id')})")
    if user.get('email'):
        click.echo(f"Email: {user['email']}")


@cli.command(name="redirect-uri")
@click.pass_context
def redirect_uri(ctx: click.Context):
    """Show OAuth redirect URI for Spotify app configuration."""
    auth = build_auth(ctx.obj)
    uri = auth.build_redirect_uri()
    click.echo(uri)
    click.echo("\nValidation checklist:")
    for line in [
        f"1. Spotify Dashboard has EXACT entry: {uri}",
        "2. No trailing slash difference (unless you registered with one)",
        "3. Client ID corresponds to the app whose dashboard you edited",
    ]:
        click.echo(f" - {line}")


@cli.command(name="token-info")
@click.pass_context
def token_info(ctx: click.Context):
    """Show OAuth token status and expiration info."""
    auth = build_auth(ctx.obj)
    credential: Credential | None = auth.store.load_credential()
    click.echo(f"State: {auth.state.value}")
    if credential is None:
        click.echo(f"No token stored ({auth.store.durable.path.resolve()})")
        return
    if credential.expires_at:
        remaining = int(credential.expires_at - time.time())
        status = "expired (will refresh)" if auth.is_expired(credential) else "valid"
        click.echo(
            f"Token file: {auth.store.durable.path.resolve()}\n"
            f"Expires at: {time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(credential.expires_at))} "
            f"(in {remaining}s, {status})"
        )
    else:
        click.echo(f"Token file: {auth.store.durable.path.resolve()}\n(No expires_at field)")
    click.echo(f"Refresh token: {'present' if credential.refresh_token else 'missing'}")


__all__ = ["login", "logout", "whoami", "redirect_uri", "token_info"]
