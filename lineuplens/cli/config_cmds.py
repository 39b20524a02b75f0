"""Configuration and maintenance commands."""

from __future__ import annotations
import json

import click

from .helpers import cli, get_cache, _redact_config


@cli.command(name="config")
@click.pass_context
def show_config(ctx: click.Context):
    """Print the effective configuration (client id redacted)."""
    click.echo(json.dumps(_redact_config(ctx.obj), indent=2, sort_keys=True))


@cli.command(name="clear-cache")
@click.confirmation_option(prompt='Delete cached liked songs and lineups?')
@click.pass_context
def clear_cache(ctx: click.Context):
    """Delete cached liked songs, sync metadata and lineup snapshots."""
    with get_cache(ctx.obj) as cache:
        cache.clear_all()
    click.echo("Cache cleared")


__all__ = ["show_config", "clear_cache"]
