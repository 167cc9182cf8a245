from scrobble_cache.cache import CacheWriteError, Rejection, ScrobbleCache
from scrobble_cache.track import Track, TrackParseError
from scrobble_cache.validator import Invalidity, classify

__all__ = [
    "CacheWriteError", "Rejection", "ScrobbleCache",
    "Track", "TrackParseError", "Invalidity", "classify",
]
