"""Data structures for landscape items and the snapshots collected for them."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def format_timestamp(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def parse_timestamp(raw: Optional[str]) -> Optional[dt.datetime]:
    """Parse ISO-8601 timestamps, including GitHub's trailing `Z` form."""
    if not raw:
        return None
    value = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value


def parse_date(raw: Optional[str]) -> Optional[dt.date]:
    if not raw:
        return None
    return dt.date.fromisoformat(raw[:10])


def _compact(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class Acquisition:
    acquiree_cb_permalink: Optional[str] = None
    acquiree_name: Optional[str] = None
    announced_on: Optional[dt.date] = None
    price: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "acquiree_cb_permalink": self.acquiree_cb_permalink,
            "acquiree_name": self.acquiree_name,
            "announced_on": self.announced_on.isoformat() if self.announced_on else None,
            "price": self.price,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Acquisition":
        return cls(
            acquiree_cb_permalink=data.get("acquiree_cb_permalink"),
            acquiree_name=data.get("acquiree_name"),
            announced_on=parse_date(data.get("announced_on")),
            price=data.get("price"),
        )


@dataclass(frozen=True)
class FundingRound:
    amount: Optional[int] = None
    announced_on: Optional[dt.date] = None
    kind: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "amount": self.amount,
            "announced_on": self.announced_on.isoformat() if self.announced_on else None,
            "kind": self.kind,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FundingRound":
        return cls(
            amount=data.get("amount"),
            announced_on=parse_date(data.get("announced_on")),
            kind=data.get("kind"),
        )


@dataclass(frozen=True)
class Organization:
    """Organization snapshot collected from Crunchbase, keyed by profile URL."""

    generated_at: dt.datetime
    name: Optional[str] = None
    description: Optional[str] = None
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    homepage_url: Optional[str] = None
    num_employees_min: Optional[int] = None
    num_employees_max: Optional[int] = None
    funding: Optional[int] = None
    kind: Optional[str] = None
    company_type: Optional[str] = None
    categories: Optional[List[str]] = None
    linkedin_url: Optional[str] = None
    twitter_url: Optional[str] = None
    stock_exchange: Optional[str] = None
    ticker: Optional[str] = None
    acquisitions: Optional[List[Acquisition]] = None
    funding_rounds: Optional[List[FundingRound]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "generated_at": format_timestamp(self.generated_at),
            "name": self.name,
            "description": self.description,
            "city": self.city,
            "region": self.region,
            "country": self.country,
            "homepage_url": self.homepage_url,
            "num_employees_min": self.num_employees_min,
            "num_employees_max": self.num_employees_max,
            "funding": self.funding,
            "kind": self.kind,
            "company_type": self.company_type,
            "categories": list(self.categories) if self.categories is not None else None,
            "linkedin_url": self.linkedin_url,
            "twitter_url": self.twitter_url,
            "stock_exchange": self.stock_exchange,
            "ticker": self.ticker,
            "acquisitions": (
                [a.to_dict() for a in self.acquisitions] if self.acquisitions is not None else None
            ),
            "funding_rounds": (
                [r.to_dict() for r in self.funding_rounds] if self.funding_rounds is not None else None
            ),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Organization":
        generated_at = parse_timestamp(data.get("generated_at"))
        if generated_at is None:
            raise ValueError("organization entry without generated_at")
        acquisitions = data.get("acquisitions")
        funding_rounds = data.get("funding_rounds")
        return cls(
            generated_at=generated_at,
            name=data.get("name"),
            description=data.get("description"),
            city=data.get("city"),
            region=data.get("region"),
            country=data.get("country"),
            homepage_url=data.get("homepage_url"),
            num_employees_min=data.get("num_employees_min"),
            num_employees_max=data.get("num_employees_max"),
            funding=data.get("funding"),
            kind=data.get("kind"),
            company_type=data.get("company_type"),
            categories=data.get("categories"),
            linkedin_url=data.get("linkedin_url"),
            twitter_url=data.get("twitter_url"),
            stock_exchange=data.get("stock_exchange"),
            ticker=data.get("ticker"),
            acquisitions=[Acquisition.from_dict(a) for a in acquisitions] if acquisitions is not None else None,
            funding_rounds=(
                [FundingRound.from_dict(r) for r in funding_rounds] if funding_rounds is not None else None
            ),
        )


@dataclass(frozen=True)
class Commit:
    url: str
    ts: Optional[dt.datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"ts": format_timestamp(self.ts), "url": self.url}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Commit":
        return cls(url=data.get("url") or "", ts=parse_timestamp(data.get("ts")))


# Releases carry the same timestamp + url pair as commits.
Release = Commit


@dataclass(frozen=True)
class Contributors:
    count: int
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "url": self.url}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Contributors":
        return cls(count=int(data.get("count") or 0), url=data.get("url") or "")


@dataclass(frozen=True)
class RepositoryData:
    """Repository snapshot collected from GitHub, keyed by repository URL."""

    generated_at: dt.datetime
    contributors: Contributors
    description: str
    latest_commit: Commit
    participation_stats: List[int]
    stars: int
    url: str
    first_commit: Optional[Commit] = None
    languages: Optional[Dict[str, int]] = None
    latest_release: Optional[Release] = None
    license: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "generated_at": format_timestamp(self.generated_at),
            "contributors": self.contributors.to_dict(),
            "description": self.description,
            "latest_commit": self.latest_commit.to_dict(),
            "participation_stats": list(self.participation_stats),
            "stars": self.stars,
            "url": self.url,
            "first_commit": self.first_commit.to_dict() if self.first_commit else None,
            "languages": dict(self.languages) if self.languages is not None else None,
            "latest_release": self.latest_release.to_dict() if self.latest_release else None,
            "license": self.license,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryData":
        generated_at = parse_timestamp(data.get("generated_at"))
        if generated_at is None:
            raise ValueError("repository entry without generated_at")
        first_commit = data.get("first_commit")
        latest_release = data.get("latest_release")
        return cls(
            generated_at=generated_at,
            contributors=Contributors.from_dict(data.get("contributors") or {}),
            description=data.get("description") or "",
            latest_commit=Commit.from_dict(data.get("latest_commit") or {}),
            participation_stats=[int(v) for v in data.get("participation_stats") or []],
            stars=int(data.get("stars") or 0),
            url=data.get("url") or "",
            first_commit=Commit.from_dict(first_commit) if first_commit else None,
            languages=data.get("languages"),
            latest_release=Release.from_dict(latest_release) if latest_release else None,
            license=data.get("license"),
        )


@dataclass
class RepositoryRef:
    """Repository reference carried by a landscape item."""

    url: str
    branch: Optional[str] = None
    primary: Optional[bool] = None
    github_data: Optional[RepositoryData] = None

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "url": self.url,
            "branch": self.branch,
            "primary": self.primary,
            "github_data": self.github_data.to_dict() if self.github_data else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryRef":
        return cls(url=data["url"], branch=data.get("branch"), primary=data.get("primary"))


@dataclass
class LandscapeItem:
    """Cataloged entity; gains Crunchbase/GitHub snapshots after enrichment."""

    name: str
    crunchbase_url: Optional[str] = None
    repositories: List[RepositoryRef] = field(default_factory=list)
    crunchbase_data: Optional[Organization] = None
    oss: Optional[bool] = None

    def primary_repositories(self) -> List[RepositoryRef]:
        return [repo for repo in self.repositories if repo.primary]

    def to_dict(self) -> Dict[str, Any]:
        return _compact({
            "name": self.name,
            "crunchbase_url": self.crunchbase_url,
            "repositories": [repo.to_dict() for repo in self.repositories] or None,
            "crunchbase_data": self.crunchbase_data.to_dict() if self.crunchbase_data else None,
            "oss": self.oss,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LandscapeItem":
        return cls(
            name=data.get("name") or "",
            crunchbase_url=data.get("crunchbase_url"),
            repositories=[RepositoryRef.from_dict(r) for r in data.get("repositories") or []],
            oss=data.get("oss"),
        )


__all__ = [
    "utcnow",
    "format_timestamp",
    "parse_timestamp",
    "parse_date",
    "Acquisition",
    "FundingRound",
    "Organization",
    "Commit",
    "Release",
    "Contributors",
    "RepositoryData",
    "RepositoryRef",
    "LandscapeItem",
]
