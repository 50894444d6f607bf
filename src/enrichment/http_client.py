"""HTTP helpers shared by the Crunchbase and GitHub API clients."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

import requests

from .config import REQUEST_TIMEOUT, USER_AGENT
from .errors import UpstreamError


def build_session(headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """Return a session carrying the user agent plus any provider headers."""
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})
    if headers:
        session.headers.update(headers)
    return session


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when a provider returns an error."""
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        body = {"text": str(body)[:300]}
    msg = body.get("message") or body.get("error") or body.get("text")
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {msg}")


async def send(session: requests.Session, method: str, url: str, **kwargs) -> requests.Response:
    """Run a blocking `requests` call off the event loop; transport errors become UpstreamError."""
    timeout = kwargs.pop("timeout", REQUEST_TIMEOUT)
    try:
        return await asyncio.to_thread(session.request, method, url, timeout=timeout, **kwargs)
    except requests.RequestException as exc:
        raise UpstreamError(f"{method} {url} failed: {exc}") from exc


def ensure_ok(resp: requests.Response, url: str) -> requests.Response:
    if 200 <= resp.status_code < 300:
        return resp
    log_http_error(resp, url)
    raise UpstreamError(f"unexpected status code {resp.status_code} for {url}", resp.status_code)


def decode_json(resp: requests.Response, url: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise UpstreamError(f"invalid JSON payload from {url}: {exc}") from exc


async def get_json(session: requests.Session, url: str, **kwargs) -> Any:
    """GET `url` and return the decoded JSON body of a 2xx response."""
    resp = ensure_ok(await send(session, "GET", url, **kwargs), url)
    return decode_json(resp, url)


def last_page(resp: requests.Response) -> int:
    """Return the `page` of the Link header's `rel="last"` entry (1 when absent)."""
    last = (resp.links or {}).get("last") or {}
    target = last.get("url")
    if not target:
        return 1
    pages = parse_qs(urlparse(target).query).get("page") or []
    try:
        return int(pages[0])
    except (IndexError, ValueError) as exc:
        raise UpstreamError(f"invalid pagination link: {target}") from exc


__all__ = [
    "build_session",
    "log_http_error",
    "send",
    "ensure_ok",
    "decode_json",
    "get_json",
    "last_page",
]
