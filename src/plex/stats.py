"""Listening statistics over Plex play history."""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from .models import PlayRecord, PlaySummary

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"


def filter_plays_by_year(records: Iterable[PlayRecord], year: int) -> List[PlayRecord]:
    """Keep records played during a UTC calendar year, preserving order."""
    return [
        record
        for record in records
        if datetime.fromtimestamp(record.viewed_at, tz=timezone.utc).year == year
    ]


def _top(counter: Counter, top_n: int) -> Tuple[Tuple[str, int], ...]:
    # Counter.most_common keeps first-seen order for equal counts
    return tuple(counter.most_common(top_n))


def summarize_plays(records: Iterable[PlayRecord], top_n: int = 10) -> PlaySummary:
    """Aggregate play records into a listening summary.

    Args:
        records: Play records, any order
        top_n: Length of each ranked list

    Returns:
        PlaySummary (all zero for no records)

    Examples:
        >>> plays = [
        ...     PlayRecord("/1", "Money", 1700000000, "track", "The Dark Side of the Moon", "Pink Floyd", 382000),
        ...     PlayRecord("/1", "Money", 1700000500, "track", "The Dark Side of the Moon", "Pink Floyd", 382000),
        ... ]
        >>> summarize_plays(plays).top_artists
        (('Pink Floyd', 2),)
    """
    records = list(records)
    if not records:
        return PlaySummary()

    artists: Counter = Counter()
    albums: Counter = Counter()
    tracks: Counter = Counter()
    total_duration = 0

    for record in records:
        artist = record.grandparent_title or UNKNOWN_ARTIST
        album = record.parent_title or UNKNOWN_ALBUM
        artists[artist] += 1
        albums[f"{artist} - {album}"] += 1
        tracks[f"{artist} - {record.title}"] += 1
        total_duration += record.duration

    timestamps = [record.viewed_at for record in records]
    summary = PlaySummary(
        total_plays=len(records),
        total_duration_ms=total_duration,
        unique_artists=len(artists),
        unique_tracks=len(tracks),
        top_artists=_top(artists, top_n),
        top_albums=_top(albums, top_n),
        top_tracks=_top(tracks, top_n),
        first_played_at=min(timestamps),
        last_played_at=max(timestamps),
    )
    logger.debug(f"Summarized {summary.total_plays} plays across {summary.unique_artists} artists")
    return summary
