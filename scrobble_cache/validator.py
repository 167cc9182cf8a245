"""
Local sanity filter applied before a scrobble is cached.

This is deliberately looser than Last.fm's own rules. We only weed out data
that can never be accepted; the server has the final say on everything else.

classify() returns the first failing check in a fixed priority order, or
None when the track is fine to cache.
"""

from __future__ import annotations
import calendar
import enum
from datetime import datetime, timezone
from typing import Callable, Tuple

from scrobble_cache import config
from scrobble_cache.track import Track

class Invalidity(enum.Enum):
    TOO_SHORT = "TooShort"
    NO_TIMESTAMP = "NoTimestamp"
    FROM_THE_FUTURE = "FromTheFuture"
    FROM_THE_DISTANT_PAST = "FromTheDistantPast"
    ARTIST_NAME_MISSING = "ArtistNameMissing"
    TRACK_NAME_MISSING = "TrackNameMissing"
    ARTIST_INVALID = "ArtistInvalid"

    def __str__(self) -> str:
        return self.value

# Last.fm did not exist before this
EARLIEST_TIMESTAMP = datetime(2003, 1, 1, tzinfo=timezone.utc)

PLACEHOLDER_ARTISTS = frozenset({"unknown artist", "unknown", "[unknown]", "[unknown artist]"})


def add_months(dt: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month."""
    index = dt.month - 1 + months
    year, month = dt.year + index // 12, index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def _checks(now: datetime, min_length: int) -> Tuple[Tuple[Invalidity, Callable[[Track], bool]], ...]:
    # Server-side "future" spam prevention is ~12h and may change, so only
    # reject what is obviously wrong.
    horizon = add_months(now, 1)
    return (
        (Invalidity.TOO_SHORT, lambda t: t.duration < min_length),
        (Invalidity.NO_TIMESTAMP, lambda t: t.timestamp is None),
        (Invalidity.FROM_THE_FUTURE, lambda t: t.timestamp > horizon),
        (Invalidity.FROM_THE_DISTANT_PAST, lambda t: t.timestamp < EARLIEST_TIMESTAMP),
        (Invalidity.ARTIST_NAME_MISSING, lambda t: t.artist is None),
        (Invalidity.TRACK_NAME_MISSING, lambda t: not t.title),
        (Invalidity.ARTIST_INVALID, lambda t: t.artist.lower() in PLACEHOLDER_ARTISTS),
    )


def classify(track: Track, now: datetime | None = None, min_length: int | None = None) -> Invalidity | None:
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    if min_length is None:
        min_length = config.SCROBBLE_MIN_LENGTH

    for reason, failed in _checks(now, min_length):
        if failed(track):
            return reason
    return None


def is_valid(track: Track, now: datetime | None = None) -> bool:
    return classify(track, now) is None
