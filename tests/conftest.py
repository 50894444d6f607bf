"""Shared fixtures: in-memory provider APIs that count the calls they receive."""

import asyncio
import datetime as dt
import json
from typing import Any, Dict, Iterable, List, Optional, Tuple
from unittest.mock import MagicMock

import pytest

from src.enrichment.cache import Cache
from src.enrichment.errors import UpstreamError
from src.enrichment.models import Commit, Release

NOW = dt.datetime(2026, 10, 18, 12, 0, 0, tzinfo=dt.timezone.utc)


def make_resp(status=200, payload=None, headers=None, links=None):
    resp = MagicMock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.links = links or {}
    resp.json.return_value = payload if payload is not None else {}
    resp.text = json.dumps(payload) if payload is not None else ""
    return resp


def cb_entity(name="Acme", employees="c_00011_00050", funding=1500000, city="San Francisco"):
    return {
        "properties": {
            "name": name,
            "short_description": f"{name} builds widgets",
            "num_employees_enum": employees,
            "funding_total": {"value_usd": funding} if funding is not None else None,
            "website": {"value": f"https://{name.lower()}.example"},
            "linkedin": {"value": f"https://www.linkedin.com/company/{name.lower()}"},
            "twitter": {"value": f"https://twitter.com/{name.lower()}"},
            "categories": [{"value": "Software"}, {"value": "Open Source"}],
            "company_type": "for_profit",
        },
        "cards": {
            "headquarters_address": [{
                "location_identifiers": [
                    {"location_type": "city", "value": city},
                    {"location_type": "region", "value": "California"},
                    {"location_type": "country", "value": "United States"},
                ]
            }],
            "acquiree_acquisitions": [],
            "raised_funding_rounds": [],
        },
    }


class FakeCrunchbaseApi:
    """Serves organization entities by permalink; unknown permalinks fail with 404."""

    def __init__(self, entities: Optional[Dict[str, Dict[str, Any]]] = None):
        self.entities = entities or {}
        self.calls: List[str] = []

    async def get_organization(self, permalink: str) -> Dict[str, Any]:
        self.calls.append(permalink)
        await asyncio.sleep(0)
        if permalink not in self.entities:
            raise UpstreamError("unexpected status code 404", 404)
        return self.entities[permalink]


def gh_repo(stars=42, license_id="Apache-2.0", description="A widget", owner="acme", repo="widget"):
    return {
        "repository": {
            "default_branch": "main",
            "description": description,
            "license": {"spdx_id": license_id, "name": license_id} if license_id else None,
            "stargazers_count": stars,
            "html_url": f"https://github.com/{owner}/{repo}",
        },
        "contributors": 7,
        "first_commit": Commit(url=f"https://github.com/{owner}/{repo}/commit/first",
                               ts=dt.datetime(2019, 1, 1, tzinfo=dt.timezone.utc)),
        "latest_commit": Commit(url=f"https://github.com/{owner}/{repo}/commit/latest",
                                ts=dt.datetime(2026, 10, 1, tzinfo=dt.timezone.utc)),
        "release": Release(url=f"https://github.com/{owner}/{repo}/releases/v1",
                           ts=dt.datetime(2026, 9, 1, tzinfo=dt.timezone.utc)),
        "languages": {"Python": 1200, "Shell": 80},
        "participation": [1] * 52,
    }


class InFlight:
    """Tracks how many fake fetches run at the same time across clients."""

    def __init__(self):
        self.current = 0
        self.peak = 0


class FakeGitHubApi:
    """Serves repositories by (owner, repo); `fail_on` names a call that raises."""

    def __init__(self, repos: Optional[Dict[Tuple[str, str], Dict[str, Any]]] = None,
                 fail_on: Iterable[Tuple[str, str, str]] = (), tracker: Optional[InFlight] = None):
        self.repos = repos if repos is not None else {}
        self.fail_on = set(fail_on)
        self.tracker = tracker
        self.calls: List[Tuple[str, str, str]] = []

    async def _lookup(self, call: str, owner: str, repo: str) -> Dict[str, Any]:
        self.calls.append((call, owner, repo))
        await asyncio.sleep(0)
        if (call, owner, repo) in self.fail_on or (owner, repo) not in self.repos:
            raise UpstreamError(f"{call} failed for {owner}/{repo}", 500)
        return self.repos[(owner, repo)]

    async def get_repository(self, owner, repo):
        if self.tracker:
            self.tracker.current += 1
            self.tracker.peak = max(self.tracker.peak, self.tracker.current)
        try:
            data = await self._lookup("repository", owner, repo)
            await asyncio.sleep(0)
        finally:
            if self.tracker:
                self.tracker.current -= 1
        return data["repository"]

    async def get_contributors_count(self, owner, repo):
        return (await self._lookup("contributors", owner, repo))["contributors"]

    async def get_first_commit(self, owner, repo, ref):
        return (await self._lookup("first_commit", owner, repo))["first_commit"]

    async def get_latest_commit(self, owner, repo, ref):
        return (await self._lookup("latest_commit", owner, repo))["latest_commit"]

    async def get_latest_release(self, owner, repo):
        return (await self._lookup("release", owner, repo))["release"]

    async def get_languages(self, owner, repo):
        return (await self._lookup("languages", owner, repo))["languages"]

    async def get_participation_stats(self, owner, repo):
        return (await self._lookup("participation", owner, repo))["participation"]


@pytest.fixture
def cache(tmp_path):
    return Cache(tmp_path)


@pytest.fixture
def clock():
    return lambda: NOW
