"""Matching package: lineup artists x library snapshot -> ranked results."""

from .engine import count_artist_songs, match_artists, rank_artists, match_and_rank

__all__ = ["count_artist_songs", "match_artists", "rank_artists", "match_and_rank"]
