"""
Persistent per-user cache of scrobbles waiting to be (re)submitted.

- Stores pending scrobbles on disk (XML file), so we don't lose plays on network errors.
- Only tracks that pass the local validity filter are cached.
- An empty cache is represented by the file not existing.
- API is minimal: add(), remove(), tracks(), path, username.
"""

from __future__ import annotations
import logging
import os
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, List

from scrobble_cache import config
from scrobble_cache.track import Track, TrackParseError
from scrobble_cache.validator import Invalidity, classify

log = logging.getLogger("scrobble-cache")

FORMAT_VERSION = "2"

class CacheWriteError(Exception): ...

@dataclass(frozen=True)
class Rejection:
    track: Track
    reason: Invalidity

class ScrobbleCache:
    def __init__(self, username: str, directory: str | None = None):
        if not username:
            raise ValueError("username must not be empty")
        self._username = username
        self._path = os.path.join(directory or config.runtime_data_dir(), f"{username}_subs_cache.xml")
        self._lock = threading.Lock()
        self._tracks: List[Track] = []
        self.reload()

    @property
    def path(self) -> str:
        return self._path

    @property
    def username(self) -> str:
        return self._username

    def __len__(self) -> int:
        with self._lock:
            return len(self._tracks)

    def __repr__(self) -> str:
        return f"ScrobbleCache(username={self._username!r}, tracks={len(self._tracks)})"

    def copy(self) -> "ScrobbleCache":
        """Independent cache for the same user and file. Does not touch the disk."""
        other = object.__new__(ScrobbleCache)
        other._username = self._username
        other._path = self._path
        other._lock = threading.Lock()
        with self._lock:
            other._tracks = list(self._tracks)
        return other

    __copy__ = copy

    def __deepcopy__(self, memo) -> "ScrobbleCache":
        # tracks are immutable, so a fresh list is already a deep copy
        return self.copy()

    # -------- persistence --------
    def reload(self) -> None:
        with self._lock:
            self._tracks = self._load()

    def _load(self) -> List[Track]:
        if not os.path.isfile(self._path):
            log.debug("No scrobble cache at %s", self._path)
            return []
        try:
            root = ET.parse(self._path).getroot()
        except (OSError, ValueError, ET.ParseError) as e:
            # Corrupt or unreadable file? Start fresh.
            log.warning("Ignoring unreadable scrobble cache %s: %s", self._path, e)
            return []
        if root.tag != "submissions":
            log.warning("Ignoring scrobble cache %s: unexpected root <%s>", self._path, root.tag)
            return []

        tracks: List[Track] = []
        for node in root:
            if node.tag != "track":
                continue
            try:
                tracks.append(Track.from_element(node))
            except TrackParseError as e:
                log.warning("Skipping cached track that failed to parse: %s", e)
        log.debug("Loaded %s cached scrobbles from %s", len(tracks), self._path)
        return tracks

    def _save(self) -> None:
        try:
            if not self._tracks:
                if os.path.exists(self._path):
                    os.remove(self._path)
                return

            root = ET.Element("submissions", product=config.APP_NAME, version=FORMAT_VERSION)
            for track in self._tracks:
                root.append(track.to_element())
            tree = ET.ElementTree(root)
            ET.indent(tree, space="  ")

            os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
            # Write atomically to avoid truncating the cache on a crash
            tmp = f"{self._path}.tmp"
            try:
                with open(tmp, "wb") as f:
                    tree.write(f, encoding="utf-8", xml_declaration=True)
                    f.write(b"\n")
                os.replace(tmp, self._path)
            except OSError:
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
        except OSError as e:
            raise CacheWriteError(f"Could not write scrobble cache {self._path}: {e}") from e

    # -------- public API --------
    def add(self, tracks: Iterable[Track]) -> List[Rejection]:
        """
        Validates each track and caches the ones that pass, then writes the
        file once. Returns the rejected tracks with the reason for each.

        Raises CacheWriteError if the file could not be written; the
        accepted tracks are still held in memory.
        """
        rejected: List[Rejection] = []
        with self._lock:
            for track in tracks:
                reason = classify(track)
                if reason is not None:
                    log.warning("Not caching invalid scrobble (%s): %s", reason, track)
                    rejected.append(Rejection(track, reason))
                elif track.is_null:
                    log.debug("Will not cache an empty track")
                else:
                    self._tracks.append(track)
            self._save()
        return rejected

    def remove(self, tracks: Iterable[Track]) -> int:
        """
        Drops every cached scrobble equal to any of ``tracks`` (all
        occurrences, not just the first), then writes the file once.

        NOTE: returns the number of scrobbles REMAINING in the cache, not the
        number removed.

        Raises CacheWriteError if the file could not be written; the
        removal still applies in memory.
        """
        doomed = list(tracks)
        with self._lock:
            self._tracks = [t for t in self._tracks if t not in doomed]
            self._save()
            return len(self._tracks)

    def tracks(self) -> List[Track]:
        """Snapshot of the cached scrobbles, oldest first."""
        with self._lock:
            return list(self._tracks)
