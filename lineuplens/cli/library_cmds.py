"""Library commands: pull, status."""

from __future__ import annotations
import time

import click

from .helpers import cli, cli_errors, build_auth, build_service, get_cache, typed


@cli.command()
@click.option('--force', is_flag=True, help='Ignore the cached snapshot and fetch every page again')
@click.pass_context
def pull(ctx: click.Context, force: bool):
    """Fetch liked songs from Spotify into the local cache."""
    with build_service(ctx.obj) as service, cli_errors():
        result = service.sync_library(force=force)
    if result.from_cache:
        click.echo(f"Cache is fresh: {len(result.entries)} liked songs (use --force to re-fetch)")
    else:
        click.echo(click.style(
            f"✓ Fetched {len(result.entries)} liked songs in {result.pages_fetched} pages "
            f"({result.duration_seconds:.1f}s)",
            fg='green',
        ))


@cli.command()
@click.pass_context
def status(ctx: click.Context):
    """Show login state and cache freshness."""
    cfg = ctx.obj
    app = typed(cfg)
    if app.spotify.client_id:
        click.echo(f"Auth: {build_auth(cfg).state.value}")
    else:
        click.echo("Auth: client_id not configured")

    with get_cache(cfg) as cache:
        metadata = cache.get_sync_metadata()
        if metadata is None or not metadata.last_sync_time:
            click.echo("Liked songs: never synced")
        else:
            age = time.time() - metadata.last_sync_time
            fresh = age < app.cache.library_max_age_seconds
            label = click.style('fresh', fg='green') if fresh else click.style('stale', fg='yellow')
            click.echo(f"Liked songs: {metadata.total_songs} cached, {round(age / 60)} minutes old ({label})")
        for fid, festival in sorted(app.catalogs.festivals.items()):
            loaded_at = cache.catalog_loaded_at(fid)
            if loaded_at:
                stamp = time.strftime('%Y-%m-%d %H:%M', time.localtime(loaded_at))
                click.echo(f"Lineup {fid}: cached {stamp}")


__all__ = ["pull", "status"]
