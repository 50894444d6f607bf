"""Unit tests for src.enrichment.http_client covering error mapping and pagination.

Execute with coverage to validate networking helpers:
    pytest tests/test_http_client.py --maxfail=1 -v --cov=src.enrichment.http_client --cov-report=term-missing
"""

import asyncio
from unittest.mock import MagicMock

import pytest
import requests

from conftest import make_resp
from src.enrichment import http_client
from src.enrichment.errors import UpstreamError


def test_build_session_sets_user_agent_and_headers():
    session = http_client.build_session({"X-cb-user-key": "k"})
    assert session.headers["User-Agent"].startswith("landscape-enrichment")
    assert session.headers["X-cb-user-key"] == "k"


def test_log_http_error_handles_json_and_text(capsys):
    http_client.log_http_error(make_resp(403, {"message": "bad credentials"}), "url")
    assert "bad credentials" in capsys.readouterr().out

    resp = make_resp(502)
    resp.json.side_effect = ValueError()
    resp.text = "gateway down"
    http_client.log_http_error(resp, "url")
    out = capsys.readouterr().out
    assert "HTTP 502" in out and "gateway down" in out


def test_send_wraps_transport_errors():
    session = MagicMock()
    session.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(UpstreamError):
        asyncio.run(http_client.send(session, "GET", "https://api.example/x"))


def test_send_passes_default_timeout():
    session = MagicMock()
    session.request.return_value = make_resp(200, {"ok": 1})
    resp = asyncio.run(http_client.send(session, "GET", "https://api.example/x", params={"a": 1}))
    assert resp.status_code == 200
    _, kwargs = session.request.call_args
    assert kwargs["timeout"] == http_client.REQUEST_TIMEOUT
    assert kwargs["params"] == {"a": 1}


def test_ensure_ok_raises_with_status(capsys):
    with pytest.raises(UpstreamError) as excinfo:
        http_client.ensure_ok(make_resp(500, {"message": "oops"}), "url")
    assert excinfo.value.status_code == 500
    assert "oops" in capsys.readouterr().out


def test_get_json_returns_payload():
    session = MagicMock()
    session.request.return_value = make_resp(200, {"name": "widget"})
    assert asyncio.run(http_client.get_json(session, "url")) == {"name": "widget"}


def test_decode_json_failure_is_upstream_error():
    resp = make_resp(200)
    resp.json.side_effect = ValueError("no json")
    with pytest.raises(UpstreamError):
        http_client.decode_json(resp, "url")


def test_last_page_from_link_header():
    resp = make_resp(200, links={
        "next": {"url": "https://api.github.com/repositories/1/contributors?per_page=1&page=2"},
        "last": {"url": "https://api.github.com/repositories/1/contributors?per_page=1&anon=true&page=37"},
    })
    assert http_client.last_page(resp) == 37


def test_last_page_defaults_to_one_without_link():
    assert http_client.last_page(make_resp(200)) == 1


def test_last_page_rejects_malformed_link():
    resp = make_resp(200, links={"last": {"url": "https://api.github.com/x?page=abc"}})
    with pytest.raises(UpstreamError):
        http_client.last_page(resp)
