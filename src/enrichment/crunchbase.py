"""Organization data collected from Crunchbase for landscape items."""

from __future__ import annotations

import datetime as dt
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .cache import Cache
from .collection import SnapshotCollector
from .config import (
    CACHE_TTL_DAYS,
    CRUNCHBASE_API_URL,
    CRUNCHBASE_CACHE_FILE,
    CRUNCHBASE_CONCURRENCY,
)
from .errors import InvalidReference, UpstreamError
from .http_client import build_session, get_json
from .models import Acquisition, FundingRound, Organization, parse_date, utcnow
from .throttle import RateLimiter

CRUNCHBASE_URL_RE = re.compile(r"^https://www\.crunchbase\.com/organization/(?P<permalink>[^/]+)/?$")

CARD_IDS = [
    "acquiree_acquisitions",
    "headquarters_address",
    "raised_funding_rounds",
]
FIELD_IDS = [
    "num_employees_enum",
    "linkedin",
    "twitter",
    "name",
    "website",
    "short_description",
    "funding_total",
    "stock_symbol",
    "stock_exchange_symbol",
    "categories",
    "company_type",
]

EMPLOYEE_RANGES: Dict[str, Tuple[Optional[int], Optional[int]]] = {
    "c_00001_00010": (1, 10),
    "c_00011_00050": (11, 50),
    "c_00051_00100": (51, 100),
    "c_00101_00250": (101, 250),
    "c_00251_00500": (251, 500),
    "c_00501_01000": (501, 1000),
    "c_01001_05000": (1001, 5000),
    "c_05001_10000": (5001, 10000),
    "c_10001_max": (10001, None),
}

# Acquisitions and funding rounds older than this many calendar years are dropped.
RECENT_YEARS = 6


def get_permalink(cb_url: str) -> str:
    """Extract the organization permalink from a Crunchbase profile url."""
    match = CRUNCHBASE_URL_RE.match(cb_url or "")
    if not match:
        raise InvalidReference(f"invalid crunchbase url: {cb_url}")
    return match.group("permalink")


class CrunchbaseApi:
    """Crunchbase v4 client; one organization lookup per call."""

    def __init__(self, api_key: str, base_url: str = CRUNCHBASE_API_URL) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = build_session({"X-cb-user-key": api_key, "Accept": "application/json"})

    async def get_organization(self, permalink: str) -> Dict[str, Any]:
        url = f"{self.base_url}/entities/organizations/{permalink}"
        params = {"card_ids": ",".join(CARD_IDS), "field_ids": ",".join(FIELD_IDS)}
        entity = await get_json(self.session, url, params=params)
        if not isinstance(entity, dict):
            raise UpstreamError(f"unexpected organization payload for {permalink}")
        return entity


def _value(obj: Any, key: str = "value") -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def employee_range(enum_value: Optional[str]) -> Tuple[Optional[int], Optional[int]]:
    return EMPLOYEE_RANGES.get(enum_value or "", (None, None))


def location_value(addresses: Optional[List[Dict[str, Any]]], location_type: str) -> Optional[str]:
    """Return the first headquarters address value for `location_type` (city, region, country)."""
    if not addresses:
        return None
    for identifier in (addresses[0] or {}).get("location_identifiers") or []:
        if (identifier or {}).get("location_type") == location_type:
            return identifier.get("value") or ""
    return None


def _is_recent(announced_on: Optional[dt.date], now: dt.datetime) -> bool:
    return announced_on is not None and now.year - announced_on.year < RECENT_YEARS


def recent_acquisitions(cards: Dict[str, Any], now: dt.datetime) -> Optional[List[Acquisition]]:
    acquisitions = []
    for raw in cards.get("acquiree_acquisitions") or []:
        identifier = raw.get("acquiree_identifier") or {}
        acquisition = Acquisition(
            acquiree_cb_permalink=identifier.get("permalink"),
            acquiree_name=identifier.get("value"),
            announced_on=parse_date(_value(raw.get("announced_on"))),
            price=_value(raw.get("price"), "value_usd"),
        )
        if _is_recent(acquisition.announced_on, now):
            acquisitions.append(acquisition)
    return acquisitions or None


def recent_funding_rounds(cards: Dict[str, Any], now: dt.datetime) -> Optional[List[FundingRound]]:
    rounds = []
    for raw in cards.get("raised_funding_rounds") or []:
        funding_round = FundingRound(
            amount=_value(raw.get("money_raised"), "value_usd"),
            announced_on=parse_date(raw.get("announced_on")),
            kind=raw.get("investment_type"),
        )
        if _is_recent(funding_round.announced_on, now):
            rounds.append(funding_round)
    return rounds or None


def organization_from_entity(entity: Dict[str, Any], now: dt.datetime) -> Organization:
    """Project a Crunchbase organization entity into an Organization snapshot."""
    try:
        props = entity.get("properties") or {}
        cards = entity.get("cards") or {}
        addresses = cards.get("headquarters_address")
        employees_min, employees_max = employee_range(props.get("num_employees_enum"))
        funding_total = props.get("funding_total")
        categories = [c.get("value") for c in props.get("categories") or [] if c.get("value")]
        return Organization(
            generated_at=now,
            name=props.get("name"),
            description=props.get("short_description"),
            city=location_value(addresses, "city"),
            region=location_value(addresses, "region"),
            country=location_value(addresses, "country"),
            homepage_url=_value(props.get("website")),
            num_employees_min=employees_min,
            num_employees_max=employees_max,
            funding=_value(funding_total, "value_usd"),
            kind="funding" if funding_total else None,
            company_type=props.get("company_type"),
            categories=categories or None,
            linkedin_url=_value(props.get("linkedin")),
            twitter_url=_value(props.get("twitter")),
            stock_exchange=props.get("stock_exchange_symbol"),
            ticker=_value(props.get("stock_symbol")),
            acquisitions=recent_acquisitions(cards, now),
            funding_rounds=recent_funding_rounds(cards, now),
        )
    except (AttributeError, IndexError, KeyError, TypeError, ValueError) as exc:
        raise UpstreamError(f"unexpected organization payload: {exc}") from exc


class OrganizationCollector(SnapshotCollector[Organization]):
    """Collect Organization snapshots keyed by Crunchbase profile url.

    Requests are spaced by the shared rate limiter and, by default, issued
    one at a time.
    """

    label = "crunchbase"
    cache_file = CRUNCHBASE_CACHE_FILE

    def __init__(
        self,
        cache: Cache,
        api: Optional[CrunchbaseApi],
        limiter: Optional[RateLimiter] = None,
        *,
        ttl: dt.timedelta = dt.timedelta(days=CACHE_TTL_DAYS),
        concurrency: int = CRUNCHBASE_CONCURRENCY,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        super().__init__(cache, ttl=ttl, concurrency=concurrency, clock=clock)
        self.api = api
        self.limiter = limiter or RateLimiter(0)
        if api is None:
            print("[warn] crunchbase api key not provided: no information will be collected from crunchbase")

    def decode(self, data: Dict[str, Any]) -> Organization:
        return Organization.from_dict(data)

    def unavailable_reason(self) -> Optional[str]:
        return None if self.api is not None else "no api key provided"

    async def fetch(self, url: str) -> Organization:
        permalink = get_permalink(url)
        await self.limiter.acquire()
        entity = await self.api.get_organization(permalink)
        return organization_from_entity(entity, self._clock())


__all__ = [
    "CRUNCHBASE_URL_RE",
    "EMPLOYEE_RANGES",
    "get_permalink",
    "CrunchbaseApi",
    "employee_range",
    "location_value",
    "recent_acquisitions",
    "recent_funding_rounds",
    "organization_from_entity",
    "OrganizationCollector",
]
