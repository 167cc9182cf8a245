import argparse
import json
import logging
import sys

from scrobble_cache import config, notify
from scrobble_cache.cache import CacheWriteError, ScrobbleCache
from scrobble_cache.track import Track

log = logging.getLogger("scrobble-cache")


def _read_tracks(path: str) -> list[Track]:
    """Reads a JSON list of scrobble payloads ({artist, title, album, duration, timestamp})."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON list of scrobbles")
    return [Track.from_dict(item) for item in data]


def _cmd_list(cache: ScrobbleCache, args) -> int:
    tracks = cache.tracks()
    if args.json:
        print(json.dumps([t.to_dict() for t in tracks], ensure_ascii=False, indent=2))
    else:
        for t in tracks:
            print(t)
        log.info("%s cached scrobbles for %s", len(tracks), cache.username)
    return 0


def _cmd_path(cache: ScrobbleCache, args) -> int:
    print(cache.path)
    return 0


def _cmd_import(cache: ScrobbleCache, args) -> int:
    tracks = _read_tracks(args.file)
    before = len(cache)
    rejected = cache.add(tracks)
    for r in rejected:
        print(f"rejected ({r.reason}): {r.track}")
    if rejected:
        args.alert("WARNING", "Scrobbles rejected",
                   f"{len(rejected)} of {len(tracks)} scrobbles were not cached",
                   {"username": cache.username})
    after = len(cache)
    print(f"cached {after - before} of {len(tracks)}")
    log.info("Cached %s scrobbles. Cache size now %s", after - before, after)
    return 0


def _cmd_remove(cache: ScrobbleCache, args) -> int:
    remaining = cache.remove(_read_tracks(args.file))
    print(remaining)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scrobble-cache",
                                     description="Inspect and edit the local scrobble retry cache.")
    parser.add_argument("--dir", help="cache directory (default: per-user data dir)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="show cached scrobbles")
    p.add_argument("username")
    p.add_argument("--json", action="store_true", help="print as JSON")
    p.set_defaults(func=_cmd_list)

    p = sub.add_parser("path", help="print the cache file location")
    p.add_argument("username")
    p.set_defaults(func=_cmd_path)

    p = sub.add_parser("import", help="add scrobbles from a JSON file")
    p.add_argument("username")
    p.add_argument("file")
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("remove", help="remove scrobbles listed in a JSON file; prints the number remaining")
    p.add_argument("username")
    p.add_argument("file")
    p.set_defaults(func=_cmd_remove)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        force=True,
    )
    args.alert = notify.from_env()

    if not args.username:
        log.error("username must not be empty")
        return 2

    cache = ScrobbleCache(args.username, directory=args.dir)
    try:
        return args.func(cache, args)
    except CacheWriteError as e:
        log.error("%s", e)
        args.alert("ERROR", "Scrobble cache write failed", str(e), {"path": cache.path})
        return 1
    except (OSError, ValueError, TypeError) as e:
        log.error("Could not read scrobbles: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
