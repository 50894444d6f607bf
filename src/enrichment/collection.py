"""Shared plumbing for collectors that keep one JSON snapshot map in the cache.

Each collector keys its snapshots by the exact reference URL carried by the
landscape items and stamps every snapshot with `generated_at`. A run:

1. loads the previous map (an unreadable file counts as an empty cache),
2. reuses entries younger than the TTL and fetches the rest,
3. drops references that could not be resolved,
4. writes the resulting map back, replacing the previous file wholesale.
"""

from __future__ import annotations

import abc
import asyncio
import datetime as dt
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

from .cache import Cache
from .errors import CacheReadError, ConfigurationMissing, EnrichmentError
from .models import utcnow

T = TypeVar("T")


@dataclass
class CollectionResult(Generic[T]):
    """Resolved snapshots plus the reason each missing reference was skipped."""

    data: Dict[str, T] = field(default_factory=dict)
    skipped: Dict[str, str] = field(default_factory=dict)
    reused: int = 0
    fetched: int = 0


def distinct_sorted(urls: Iterable[Optional[str]]) -> List[str]:
    return sorted({url for url in urls if url})


def is_fresh(generated_at: dt.datetime, now: dt.datetime, ttl: dt.timedelta) -> bool:
    return now - generated_at < ttl


def decode_snapshot_map(raw: bytes, decode: Callable[[Dict[str, Any]], T]) -> Dict[str, T]:
    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise CacheReadError(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise CacheReadError("expected a JSON object keyed by url")
    try:
        return {url: decode(entry) for url, entry in payload.items()}
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise CacheReadError(f"invalid entry: {exc}") from exc


def encode_snapshot_map(data: Dict[str, Any]) -> bytes:
    payload = {url: data[url].to_dict() for url in sorted(data)}
    return json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8")


class SnapshotCollector(abc.ABC, Generic[T]):
    """Cache-aware collection flow; subclasses supply decoding and fetching."""

    label = "snapshot"
    cache_file = "snapshots.json"

    def __init__(
        self,
        cache: Cache,
        *,
        ttl: dt.timedelta,
        concurrency: int = 1,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self.cache = cache
        self.ttl = ttl
        self.concurrency = max(1, concurrency)
        self._clock = clock

    @abc.abstractmethod
    def decode(self, data: Dict[str, Any]) -> T:
        """Rebuild one cached snapshot from its JSON form."""

    def unavailable_reason(self) -> Optional[str]:
        """Return why nothing can be fetched (e.g. no credentials), or None."""
        return None

    @abc.abstractmethod
    async def fetch(self, url: str) -> T:
        """Fetch a fresh snapshot for `url`; raise EnrichmentError to skip it."""

    async def load_cached(self) -> Dict[str, T]:
        try:
            entry = await asyncio.to_thread(self.cache.read, self.cache_file)
        except OSError as exc:
            print(f"[warn] error reading {self.label} cache file: {exc}")
            return {}
        if entry is None:
            return {}
        _, raw = entry
        try:
            return decode_snapshot_map(raw, self.decode)
        except CacheReadError as exc:
            print(f"[warn] error parsing {self.label} cache file: {exc}")
            return {}

    async def persist(self, data: Dict[str, T]) -> None:
        await asyncio.to_thread(self.cache.write, self.cache_file, encode_snapshot_map(data))

    async def collect_with_report(self, urls: Iterable[Optional[str]]) -> CollectionResult[T]:
        """Collect snapshots for `urls`, reporting why any were left out."""
        targets = distinct_sorted(urls)
        cached = await self.load_cached()
        now = self._clock()
        unavailable = self.unavailable_reason()
        fanout = asyncio.Semaphore(self.concurrency)

        async def resolve(url: str) -> Tuple[str, Optional[T], Optional[str], bool]:
            entry = cached.get(url)
            if entry is not None and is_fresh(entry.generated_at, now, self.ttl):
                return url, entry, None, True
            try:
                if unavailable:
                    raise ConfigurationMissing(unavailable)
                async with fanout:
                    return url, await self.fetch(url), None, False
            except ConfigurationMissing as exc:
                print(f"[info] {self.label}: skipping {url} -> {exc}")
                return url, None, str(exc), False
            except EnrichmentError as exc:
                print(f"[warn] {self.label}: skipping {url} -> {exc}")
                return url, None, str(exc), False

        result: CollectionResult[T] = CollectionResult()
        for url, snapshot, reason, reused in await asyncio.gather(*(resolve(u) for u in targets)):
            if snapshot is None:
                result.skipped[url] = reason or "unknown error"
                continue
            result.data[url] = snapshot
            if reused:
                result.reused += 1
            else:
                result.fetched += 1

        await self.persist(result.data)
        print(
            f"[info] {self.label}: {result.reused} reused from cache, "
            f"{result.fetched} fetched, {len(result.skipped)} skipped"
        )
        return result

    async def collect(self, urls: Iterable[Optional[str]]) -> Dict[str, T]:
        """Return a url -> snapshot map; unresolved references are absent."""
        return (await self.collect_with_report(urls)).data


__all__ = [
    "CollectionResult",
    "SnapshotCollector",
    "distinct_sorted",
    "is_fresh",
    "decode_snapshot_map",
    "encode_snapshot_map",
]
