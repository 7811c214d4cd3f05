from __future__ import annotations

import time
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
from threading import Lock

from .settings import settings

Coord = tuple[float, float]


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expired: int = 0


class PathCacheStore:
    """Memo of resolved road paths: entries live ``ttl_s`` seconds, least recently used go first.

    Paths are stored as tuples and handed out as fresh lists, so callers may
    mutate what they get back.
    """

    def __init__(self, *, ttl_s: int, max_entries: int, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_s = max(1, int(ttl_s))
        self.max_entries = max(1, int(max_entries))
        self._clock = clock
        self._lock = Lock()
        self._paths: OrderedDict[str, tuple[float, tuple[Coord, ...]]] = OrderedDict()
        self._stats = CacheStats()

    def __len__(self) -> int:
        return len(self._paths)

    def get(self, key: str) -> list[Coord] | None:
        with self._lock:
            hit = self._paths.get(key)
            if hit is None:
                self._stats.misses += 1
                return None
            expires_at, path = hit
            if self._clock() > expires_at:
                del self._paths[key]
                self._stats.expired += 1
                self._stats.misses += 1
                return None
            self._paths.move_to_end(key)
            self._stats.hits += 1
            return list(path)

    def set(self, key: str, path: Sequence[Coord]) -> None:
        frozen = tuple((float(lat), float(lng)) for lat, lng in path)
        with self._lock:
            self._paths[key] = (self._clock() + self.ttl_s, frozen)
            self._paths.move_to_end(key)
            while len(self._paths) > self.max_entries:
                self._paths.popitem(last=False)
                self._stats.evictions += 1

    def clear(self) -> int:
        with self._lock:
            dropped = len(self._paths)
            self._paths.clear()
            return dropped

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return {
                "size": len(self._paths),
                "ttl_s": self.ttl_s,
                "max_entries": self.max_entries,
                **asdict(self._stats),
            }


PATH_CACHE = PathCacheStore(ttl_s=settings.route_cache_ttl_s, max_entries=settings.route_cache_max_entries)


def path_cache_key(profile: str, coords: Sequence[Coord]) -> str:
    """Profile plus coordinates at 6 decimals (about 10 cm), in visiting order."""
    return profile + "|" + ";".join(f"{lat:.6f},{lng:.6f}" for lat, lng in coords)


def get_cached_path(key: str) -> list[Coord] | None:
    return PATH_CACHE.get(key)


def set_cached_path(key: str, path: Sequence[Coord]) -> None:
    PATH_CACHE.set(key, path)


def clear_path_cache() -> int:
    return PATH_CACHE.clear()


def path_cache_stats() -> dict[str, int]:
    return PATH_CACHE.snapshot()
