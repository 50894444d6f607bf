"""Configuration for the landscape enrichment workflow."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from src.secrets import (
    CRUNCHBASE_API_KEY_SECRET,
    GITHUB_TOKENS_SECRET,
    load_local_secrets,
    split_tokens,
)

USER_AGENT = "landscape-enrichment/1.0"
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "30"))

CACHE_SUBDIR = "landscape"
CACHE_TTL_DAYS = int(os.getenv("ENRICHMENT_CACHE_TTL_DAYS", "7"))

CRUNCHBASE_API_URL = "https://api.crunchbase.com/api/v4"
CRUNCHBASE_CACHE_FILE = "crunchbase.json"
CRUNCHBASE_RATE_LIMIT_INTERVAL_MS = int(os.getenv("CRUNCHBASE_RATE_LIMIT_INTERVAL_MS", "300"))
CRUNCHBASE_CONCURRENCY = max(1, int(os.getenv("CRUNCHBASE_CONCURRENCY", "1")))

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_CACHE_FILE = "github.json"

CRUNCHBASE_API_KEY_ENV = "CRUNCHBASE_API_KEY"
GITHUB_TOKENS_ENV = "GITHUB_TOKENS"
CACHE_DIR_ENV = "LANDSCAPE_CACHE_DIR"


@dataclass(frozen=True)
class EnrichmentSettings:
    """Resolved runtime settings for one enrichment invocation."""

    cache_dir: Optional[Path]
    crunchbase_api_key: Optional[str]
    github_tokens: Tuple[str, ...]
    data_file: Optional[Path]
    output_file: Optional[Path]
    cache_ttl_days: int = CACHE_TTL_DAYS
    crunchbase_interval_ms: int = CRUNCHBASE_RATE_LIMIT_INTERVAL_MS
    crunchbase_concurrency: int = CRUNCHBASE_CONCURRENCY


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the enrichment entry point."""

    parser = argparse.ArgumentParser(
        description="Enrich landscape items with Crunchbase and GitHub metadata.",
    )
    parser.add_argument("--data-file", help="JSON list of landscape items to enrich")
    parser.add_argument("--output-file", help="where to write the enriched items (JSON)")
    parser.add_argument("--cache-dir", default=os.getenv(CACHE_DIR_ENV))
    parser.add_argument("--crunchbase-api-key", default=None)
    parser.add_argument("--github-tokens", default=None, help="comma-separated list")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    return parser.parse_args(argv)


def _resolve_api_key(cli_value: Optional[str], secrets: dict) -> Optional[str]:
    for candidate in (cli_value, os.getenv(CRUNCHBASE_API_KEY_ENV), secrets.get(CRUNCHBASE_API_KEY_SECRET)):
        if candidate and str(candidate).strip():
            return str(candidate).strip()
    return None


def _resolve_tokens(cli_value: Optional[str], secrets: dict) -> Tuple[str, ...]:
    for candidate in (cli_value, os.getenv(GITHUB_TOKENS_ENV), secrets.get(GITHUB_TOKENS_SECRET)):
        tokens = split_tokens(candidate)
        if tokens:
            return tuple(tokens)
    return ()


def resolve_settings(args: Optional[argparse.Namespace] = None) -> EnrichmentSettings:
    """Merge CLI flags, environment, and local secrets into immutable settings."""

    args = args or parse_args([])
    secrets = load_local_secrets()
    return EnrichmentSettings(
        cache_dir=Path(args.cache_dir).expanduser() if args.cache_dir else None,
        crunchbase_api_key=_resolve_api_key(args.crunchbase_api_key, secrets),
        github_tokens=_resolve_tokens(args.github_tokens, secrets),
        data_file=Path(args.data_file) if args.data_file else None,
        output_file=Path(args.output_file) if args.output_file else None,
    )


__all__ = [
    "USER_AGENT",
    "REQUEST_TIMEOUT",
    "CACHE_SUBDIR",
    "CACHE_TTL_DAYS",
    "CRUNCHBASE_API_URL",
    "CRUNCHBASE_CACHE_FILE",
    "CRUNCHBASE_RATE_LIMIT_INTERVAL_MS",
    "CRUNCHBASE_CONCURRENCY",
    "GITHUB_API_URL",
    "GITHUB_API_VERSION",
    "GITHUB_CACHE_FILE",
    "EnrichmentSettings",
    "build_arg_parser",
    "parse_args",
    "resolve_settings",
]
