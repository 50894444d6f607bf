"""Repository data collected from GitHub for landscape items."""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .cache import Cache
from .collection import SnapshotCollector
from .config import CACHE_TTL_DAYS, GITHUB_API_URL, GITHUB_API_VERSION, GITHUB_CACHE_FILE
from .errors import InvalidReference, UpstreamError
from .http_client import build_session, decode_json, ensure_ok, get_json, last_page, send
from .models import Commit, Contributors, Release, RepositoryData, parse_timestamp, utcnow
from .throttle import ClientPool

GITHUB_REPO_URL_RE = re.compile(r"^https://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+)/?$")

# License value GitHub reports when it cannot identify the license.
NO_ASSERTION = "NOASSERTION"


def get_owner_and_repo(repo_url: str) -> Tuple[str, str]:
    """Extract `(owner, repo)` from a GitHub repository url."""
    match = GITHUB_REPO_URL_RE.match(repo_url or "")
    if not match:
        raise InvalidReference(f"invalid repository url: {repo_url}")
    return match.group("owner"), match.group("repo")


def normalize_license(license_obj: Optional[Dict[str, Any]]) -> Optional[str]:
    """Return the SPDX id (or name) of a repository license; NOASSERTION means none."""
    if not license_obj:
        return None
    value = license_obj.get("spdx_id") or license_obj.get("name")
    if not value or value == NO_ASSERTION:
        return None
    return value


def commit_from_payload(payload: Dict[str, Any]) -> Commit:
    author = ((payload.get("commit") or {}).get("author")) or {}
    return Commit(url=payload.get("html_url") or "", ts=parse_timestamp(author.get("date")))


class GitHubApi:
    """GitHub REST client bound to a single token."""

    def __init__(self, token: str, base_url: str = GITHUB_API_URL) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = build_session({
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        })

    def _url(self, owner: str, repo: str, path: str = "") -> str:
        return f"{self.base_url}/repos/{owner}/{repo}{path}"

    async def _last_page(self, url: str, params: Dict[str, Any]) -> int:
        resp = ensure_ok(await send(self.session, "HEAD", url, params=params), url)
        return last_page(resp)

    async def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        data = await get_json(self.session, self._url(owner, repo))
        if not isinstance(data, dict):
            raise UpstreamError(f"unexpected repository payload for {owner}/{repo}")
        return data

    async def get_contributors_count(self, owner: str, repo: str) -> int:
        # With one contributor per page, the last page number is the count.
        url = self._url(owner, repo, "/contributors")
        return await self._last_page(url, {"per_page": 1, "anon": "true"})

    async def get_first_commit(self, owner: str, repo: str, ref: str) -> Optional[Commit]:
        url = self._url(owner, repo, "/commits")
        page = await self._last_page(url, {"sha": ref, "per_page": 1})
        commits = await get_json(self.session, url, params={"sha": ref, "per_page": 1, "page": page})
        if not isinstance(commits, list) or not commits:
            return None
        return commit_from_payload(commits[-1])

    async def get_latest_commit(self, owner: str, repo: str, ref: str) -> Commit:
        payload = await get_json(self.session, self._url(owner, repo, f"/commits/{ref}"))
        return commit_from_payload(payload)

    async def get_latest_release(self, owner: str, repo: str) -> Optional[Release]:
        url = self._url(owner, repo, "/releases/latest")
        resp = await send(self.session, "GET", url)
        if resp.status_code == 404:
            return None
        payload = decode_json(ensure_ok(resp, url), url)
        return Release(url=payload.get("html_url") or "", ts=parse_timestamp(payload.get("published_at")))

    async def get_languages(self, owner: str, repo: str) -> Optional[Dict[str, int]]:
        languages = await get_json(self.session, self._url(owner, repo, "/languages"))
        return {name: int(size) for name, size in (languages or {}).items()}

    async def get_participation_stats(self, owner: str, repo: str) -> List[int]:
        url = self._url(owner, repo, "/stats/participation")
        resp = ensure_ok(await send(self.session, "GET", url), url)
        if resp.status_code == 202:
            raise UpstreamError(f"participation stats for {owner}/{repo} are still being computed")
        payload = decode_json(resp, url)
        return [int(v) for v in (payload or {}).get("all") or []]


async def build_repository_data(gh: GitHubApi, repo_url: str, now: dt.datetime) -> RepositoryData:
    """Run the per-repository call sequence with one client; any failure aborts it."""
    owner, repo = get_owner_and_repo(repo_url)
    gh_repo = await gh.get_repository(owner, repo)
    default_branch = gh_repo["default_branch"]
    stars = int(gh_repo.get("stargazers_count") or 0)

    contributors_count = await gh.get_contributors_count(owner, repo)
    first_commit = await gh.get_first_commit(owner, repo, default_branch)
    latest_commit = await gh.get_latest_commit(owner, repo, default_branch)
    latest_release = await gh.get_latest_release(owner, repo)
    languages = await gh.get_languages(owner, repo)
    participation_stats = await gh.get_participation_stats(owner, repo)

    return RepositoryData(
        generated_at=now,
        contributors=Contributors(
            count=contributors_count,
            url=f"https://github.com/{owner}/{repo}/graphs/contributors",
        ),
        description=gh_repo.get("description") or "",
        first_commit=first_commit,
        languages=languages,
        latest_commit=latest_commit,
        latest_release=latest_release,
        license=normalize_license(gh_repo.get("license")),
        participation_stats=participation_stats,
        stars=stars,
        url=gh_repo.get("html_url") or repo_url,
    )


class RepositoryCollector(SnapshotCollector[RepositoryData]):
    """Collect RepositoryData snapshots keyed by repository url.

    In-flight fetches are bounded by the client pool: each fetch checks out
    one client for its whole call sequence.
    """

    label = "github"
    cache_file = GITHUB_CACHE_FILE

    def __init__(
        self,
        cache: Cache,
        pool: Optional[ClientPool[GitHubApi]],
        *,
        ttl: dt.timedelta = dt.timedelta(days=CACHE_TTL_DAYS),
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        super().__init__(cache, ttl=ttl, concurrency=pool.size if pool else 1, clock=clock)
        self.pool = pool
        if pool is None:
            print("[warn] github tokens not provided: no information will be collected from github")

    def decode(self, data: Dict[str, Any]) -> RepositoryData:
        return RepositoryData.from_dict(data)

    def unavailable_reason(self) -> Optional[str]:
        return None if self.pool is not None else "no tokens provided"

    async def fetch(self, url: str) -> RepositoryData:
        get_owner_and_repo(url)
        async with self.pool.checkout() as gh:
            try:
                return await build_repository_data(gh, url, self._clock())
            except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
                raise UpstreamError(f"unexpected payload while collecting {url}: {exc!r}") from exc


def build_client_pool(tokens: Sequence[str]) -> Optional[ClientPool[GitHubApi]]:
    """Return a pool with one client per token, or None when there are no tokens."""
    if not tokens:
        return None
    return ClientPool(GitHubApi(token) for token in tokens)


__all__ = [
    "GITHUB_REPO_URL_RE",
    "NO_ASSERTION",
    "get_owner_and_repo",
    "normalize_license",
    "commit_from_payload",
    "GitHubApi",
    "build_repository_data",
    "RepositoryCollector",
    "build_client_pool",
]
