"""Entry points wiring settings, cache, collectors, and merge-back together."""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .cache import Cache
from .config import EnrichmentSettings, parse_args, resolve_settings
from .crunchbase import CrunchbaseApi, OrganizationCollector
from .errors import CacheSetupError
from .github import RepositoryCollector, build_client_pool
from .merge import merge_external_data
from .models import LandscapeItem, Organization, RepositoryData
from .throttle import RateLimiter


def collect_urls(items: Sequence[LandscapeItem]) -> Tuple[Set[str], Set[str]]:
    """Return the distinct profile urls and repository urls referenced by items."""
    profile_urls = {item.crunchbase_url for item in items if item.crunchbase_url}
    repo_urls = {repo.url for item in items for repo in item.repositories if repo.url}
    return profile_urls, repo_urls


def build_collectors(cache: Cache, settings: EnrichmentSettings) -> Tuple[OrganizationCollector, RepositoryCollector]:
    """Create both collectors with their own limiter and client pool for this run."""
    ttl = dt.timedelta(days=settings.cache_ttl_days)
    cb_api = CrunchbaseApi(settings.crunchbase_api_key) if settings.crunchbase_api_key else None
    limiter = RateLimiter(settings.crunchbase_interval_ms / 1000.0)
    org_collector = OrganizationCollector(
        cache, cb_api, limiter, ttl=ttl, concurrency=settings.crunchbase_concurrency
    )
    repo_collector = RepositoryCollector(cache, build_client_pool(settings.github_tokens), ttl=ttl)
    return org_collector, repo_collector


async def collect_external_data(
    org_collector: OrganizationCollector,
    repo_collector: RepositoryCollector,
    items: Sequence[LandscapeItem],
) -> Tuple[Dict[str, Organization], Dict[str, RepositoryData]]:
    """Run both collectors concurrently; if one fails, the other is cancelled."""
    profile_urls, repo_urls = collect_urls(items)
    print(f"[info] collecting {len(profile_urls)} organizations and {len(repo_urls)} repositories...")

    org_task = asyncio.create_task(org_collector.collect(profile_urls))
    repo_task = asyncio.create_task(repo_collector.collect(repo_urls))
    try:
        crunchbase_data, github_data = await asyncio.gather(org_task, repo_task)
    except BaseException:
        for task in (org_task, repo_task):
            task.cancel()
        raise
    return crunchbase_data, github_data


async def enrich_items_async(items: List[LandscapeItem], settings: EnrichmentSettings,
                             cache: Optional[Cache] = None) -> List[LandscapeItem]:
    cache = cache or Cache(settings.cache_dir)
    org_collector, repo_collector = build_collectors(cache, settings)
    crunchbase_data, github_data = await collect_external_data(org_collector, repo_collector, items)
    merge_external_data(items, crunchbase_data, github_data)
    return items


def enrich_items(items: List[LandscapeItem], settings: EnrichmentSettings,
                 cache: Optional[Cache] = None) -> List[LandscapeItem]:
    """Collect external data for `items` and attach it in place."""
    return asyncio.run(enrich_items_async(items, settings, cache))


def load_items(path: Path) -> List[LandscapeItem]:
    with open(path, "r", encoding="utf-8") as fh:
        data = json.load(fh)
    if isinstance(data, dict):
        data = data.get("items") or []
    return [LandscapeItem.from_dict(entry) for entry in data]


def save_items(path: Path, items: Sequence[LandscapeItem]) -> None:
    """Write JSON to disk using UTF-8 and deterministic formatting."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump([item.to_dict() for item in items], fh, indent=2, ensure_ascii=False)


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point: enrich the items in --data-file and write --output-file."""
    args = parse_args(argv)
    settings = resolve_settings(args)
    if not settings.data_file:
        print("No data file specified. Pass --data-file with a JSON list of items.")
        sys.exit(1)

    items = load_items(settings.data_file)
    print(f"Enriching {len(items)} items...")
    try:
        enrich_items(items, settings)
    except CacheSetupError as exc:
        print(f"[error] {exc}")
        sys.exit(1)

    output_file = settings.output_file or settings.data_file.with_name("enriched_items.json")
    save_items(output_file, items)
    oss_count = sum(1 for item in items if item.oss)
    print(f"\nDone: {len(items)} items ({oss_count} open source) -> {output_file}")


__all__ = [
    "collect_urls",
    "build_collectors",
    "collect_external_data",
    "enrich_items_async",
    "enrich_items",
    "load_items",
    "save_items",
    "main",
]
