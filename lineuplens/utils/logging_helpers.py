"""Logging helper utilities for consistent progress reporting."""

import logging
import click

from .progress import ProgressEvent

logger = logging.getLogger(__name__)


def log_progress(
    processed: int,
    total: int | None,
    elapsed_seconds: float = 0.0,
    item_name: str = "songs"
) -> None:
    """Log progress info with consistent formatting.

    Args:
        processed: Number of items processed so far
        total: Total number of items (None if unknown)
        elapsed_seconds: Time elapsed since start
        item_name: Name of items being processed (e.g., "songs", "artists")
    """
    parts = [
        f"{click.style(f'{processed}', fg='cyan')} {item_name} processed"
    ]

    if total:
        pct = processed / total * 100
        parts[0] = f"{click.style(f'{processed}/{total}', fg='cyan')} {item_name} ({pct:.0f}%)"

    if elapsed_seconds > 0:
        rate = processed / elapsed_seconds
        parts.append(f"{rate:.1f} {item_name}/s")

    logger.info(" | ".join(parts))


def log_event(event: ProgressEvent) -> None:
    """Progress subscriber used by the CLI."""
    if event.current is not None:
        item_name = "songs" if event.stage == "library" else "items"
        log_progress(event.current, event.total, item_name=item_name)
    else:
        logger.info(f"{click.style('→', fg='cyan')} {event.message}")


def format_summary(
    matched: int,
    lineup_size: int,
    library_size: int,
    duration_seconds: float = 0.0,
    item_name: str = "Matches"
) -> str:
    """Format a summary line with colored counts.

    Returns:
        Formatted summary string with colors
    """
    parts = [
        click.style('✓', fg='green'),
        f"{item_name}:",
        click.style(f'{matched} of {lineup_size} lineup artists', fg='green'),
        click.style(f'across {library_size} liked songs', fg='blue'),
    ]

    if duration_seconds > 0:
        parts.append(f"in {duration_seconds:.2f}s")

    return " ".join(parts)


__all__ = ["log_progress", "log_event", "format_summary"]
