"""Festival commands: festivals, match."""

from __future__ import annotations
import csv
from pathlib import Path

import click

from .helpers import cli, cli_errors, build_service, typed
from ..catalog import FestivalRegistry
from ..utils.logging_helpers import format_summary


@cli.command()
@click.option('--details', is_flag=True, help="Also show each lineup's CSV source and poster image")
@click.pass_context
def festivals(ctx: click.Context, details: bool):
    """List configured festival lineups."""
    registry = FestivalRegistry(typed(ctx.obj).catalogs)
    entries = registry.list()
    if not entries:
        click.echo("No festivals configured")
        return
    width = max(len(fid) for fid, _ in entries)
    for fid, festival in entries:
        click.echo(f"{click.style(fid.ljust(width), fg='cyan')}  {festival.name}")
        if details:
            click.echo(f"{''.ljust(width)}  csv:    {registry.source_for(fid)}")
            if festival.image:
                click.echo(f"{''.ljust(width)}  poster: {festival.image}")


@cli.command()
@click.argument('festival_id')
@click.option('--force-sync', is_flag=True, help='Re-fetch liked songs even if the cache is fresh')
@click.option('--cached-lineup', is_flag=True, help='Use the stored lineup snapshot instead of re-reading the CSV')
@click.option('--top', type=int, default=None, help='Show only the first N artists (0 = all)')
@click.option('--csv', 'csv_path', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help='Also write the ranked matches to a CSV file')
@click.pass_context
def match(ctx: click.Context, festival_id: str, force_sync: bool, cached_lineup: bool, top: int | None, csv_path: Path | None):
    """Rank FESTIVAL_ID's artists by how many of your liked songs feature them."""
    cfg = ctx.obj
    with build_service(cfg) as service, cli_errors():
        festival = service.registry.get(festival_id)
        result = service.generate_matches(festival_id, force_sync=force_sync, use_cached_catalog=cached_lineup)

    limit = typed(cfg).matching.show_top if top is None else top
    shown = result.matches[:limit] if limit and limit > 0 else result.matches

    click.echo(click.style(f"\n{festival.name}", bold=True))
    if not shown:
        click.echo("None of the lineup artists appear in your liked songs.")
    else:
        width = max(len(m.original_name) for m in shown)
        for rank, m in enumerate(shown, start=1):
            songs = "song" if m.liked_song_count == 1 else "songs"
            click.echo(
                f"{rank:>3}. {m.original_name.ljust(width)}  "
                f"{click.style(str(m.liked_song_count), fg='cyan')} liked {songs}"
            )
        if len(shown) < len(result.matches):
            click.echo(f"     ... and {len(result.matches) - len(shown)} more")

    click.echo(format_summary(
        len(result.matches), result.lineup_size, result.library_size, result.duration_seconds,
    ))

    if csv_path is not None:
        csv_path.parent.mkdir(parents=True, exist_ok=True)
        with csv_path.open('w', newline='', encoding='utf-8') as fh:
            writer = csv.writer(fh)
            writer.writerow(['rank', 'artist_id', 'original_name', 'matched_name', 'liked_song_count'])
            for rank, m in enumerate(result.matches, start=1):
                writer.writerow([rank, m.artist_id, m.original_name, m.matched_name, m.liked_song_count])
        click.echo(f"Wrote {len(result.matches)} rows to {csv_path}")


__all__ = ["festivals", "match"]
