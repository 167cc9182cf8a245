"""
A single scrobble: one play of one track at one point in time.

Tracks are immutable values. Two tracks are the same scrobble when every
field matches, which is what the cache relies on for removal.
"""

from __future__ import annotations
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict

class TrackParseError(ValueError): ...

# element tag -> attribute name; "track" inside <track> is the title
_TEXT_FIELDS = (
    ("artist", "artist"),
    ("albumArtist", "album_artist"),
    ("album", "album"),
    ("track", "title"),
    ("mbid", "mbid"),
    ("source", "source"),
)


# anything outside the XML 1.0 Char production would make the cache file unreadable
_XML_ILLEGAL = re.compile("[^\t\n\r\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


def _xml_safe(s: str | None) -> str | None:
    if s is None:
        return None
    # parsers turn \r into \n, so do it up front
    s = s.replace("\r\n", "\n").replace("\r", "\n")
    return _XML_ILLEGAL.sub("", s)


def _to_datetime(value) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        value = datetime.fromtimestamp(int(value), tz=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.replace(microsecond=0)


def _to_int(s: str | None, field: str) -> int | None:
    if s is None or not s.strip():
        return None
    try:
        return int(s.strip())
    except ValueError:
        raise TrackParseError(f"<{field}> is not an integer: {s!r}")


@dataclass(frozen=True)
class Track:
    artist: str | None = None
    title: str = ""
    album: str | None = None
    album_artist: str | None = None
    duration: int = 0             # seconds
    timestamp: datetime | None = None  # start of play, UTC
    mbid: str | None = None
    source: str | None = None

    def __post_init__(self):
        for _, attr in _TEXT_FIELDS:
            object.__setattr__(self, attr, _xml_safe(getattr(self, attr)))
        object.__setattr__(self, "timestamp", _to_datetime(self.timestamp))
        object.__setattr__(self, "duration", int(self.duration or 0))
        object.__setattr__(self, "title", self.title or "")

    @property
    def is_null(self) -> bool:
        """True for the default-constructed placeholder."""
        return self == _NULL_TRACK

    def __str__(self) -> str:
        when = self.timestamp.isoformat() if self.timestamp else "?"
        return f"{self.artist} — {self.title} @ {when}"

    # -------- XML --------
    def to_element(self) -> ET.Element:
        el = ET.Element("track")
        for tag, attr in _TEXT_FIELDS:
            value = getattr(self, attr)
            if value is None:
                continue
            if attr == "title" and not value:
                continue
            ET.SubElement(el, tag).text = value
        ET.SubElement(el, "duration").text = str(self.duration)
        if self.timestamp is not None:
            ET.SubElement(el, "timestamp").text = str(int(self.timestamp.timestamp()))
        return el

    @classmethod
    def from_element(cls, el: ET.Element) -> "Track":
        if el.tag != "track":
            raise TrackParseError(f"expected <track>, got <{el.tag}>")

        values: Dict[str, Any] = {}
        for tag, attr in _TEXT_FIELDS:
            child = el.find(tag)
            if child is not None:
                # <artist/> is an empty name, not a missing one
                values[attr] = child.text or ""

        values["duration"] = _to_int(el.findtext("duration"), "duration") or 0
        ts = _to_int(el.findtext("timestamp"), "timestamp")
        if ts is not None:
            try:
                values["timestamp"] = datetime.fromtimestamp(ts, tz=timezone.utc)
            except (OverflowError, OSError, ValueError) as e:
                raise TrackParseError(f"<timestamp> out of range: {ts}") from e
        return cls(**values)

    # -------- plain dicts (submission payload shape) --------
    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["timestamp"] = int(self.timestamp.timestamp()) if self.timestamp else None
        return {k: v for k, v in d.items() if v is not None}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Track":
        known = {k: d[k] for k in cls.__dataclass_fields__ if k in d}
        ts = known.get("timestamp")
        if isinstance(ts, str):
            try:
                known["timestamp"] = int(ts)
            except ValueError:
                known["timestamp"] = datetime.fromisoformat(ts)
        return cls(**known)


_NULL_TRACK = Track()
