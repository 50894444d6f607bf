"""Tests for src.enrichment.merge ensuring snapshots land on the right items.

Run with coverage:
    pytest tests/test_merge.py --maxfail=1 -v --cov=src.enrichment.merge --cov-report=term-missing
"""

from conftest import NOW
from src.enrichment import merge
from src.enrichment.models import (
    Commit,
    Contributors,
    LandscapeItem,
    Organization,
    RepositoryData,
    RepositoryRef,
)

ACME_CB = "https://www.crunchbase.com/organization/acme"
WIDGET = "https://github.com/acme/widget"
DOCS = "https://github.com/acme/docs"


def _repo_data(url, license=None):
    return RepositoryData(
        generated_at=NOW,
        contributors=Contributors(count=3, url=url + "/graphs/contributors"),
        description="",
        latest_commit=Commit(url=url + "/commit/1", ts=NOW),
        participation_stats=[0] * 52,
        stars=1,
        url=url,
        license=license,
    )


def _item(primary=True, secondary_url=None):
    repos = [RepositoryRef(url=WIDGET, primary=primary)]
    if secondary_url:
        repos.append(RepositoryRef(url=secondary_url, primary=False))
    return LandscapeItem(name="Acme", crunchbase_url=ACME_CB, repositories=repos)


def test_crunchbase_data_attached_by_url():
    org = Organization(generated_at=NOW, name="Acme")
    items = [_item(), LandscapeItem(name="No profile")]
    merge.add_crunchbase_data(items, {ACME_CB: org})
    assert items[0].crunchbase_data is org
    assert items[1].crunchbase_data is None


def test_missing_lookups_leave_fields_untouched():
    item = _item()
    merge.merge_external_data([item], {}, {})
    assert item.crunchbase_data is None
    assert item.repositories[0].github_data is None
    assert item.oss is None


def test_primary_repository_with_license_marks_oss():
    item = _item(secondary_url=DOCS)
    merge.add_github_data([item], {WIDGET: _repo_data(WIDGET, "MIT"), DOCS: _repo_data(DOCS)})
    assert item.repositories[0].github_data.license == "MIT"
    assert item.repositories[1].github_data is not None
    assert item.oss is True


def test_licensed_secondary_repository_does_not_mark_oss():
    item = _item(primary=False, secondary_url=DOCS)
    merge.add_github_data([item], {WIDGET: _repo_data(WIDGET, "MIT"), DOCS: _repo_data(DOCS, "MIT")})
    assert item.oss is None


def test_unlicensed_primary_keeps_existing_flag():
    item = _item()
    item.oss = False
    merge.add_github_data([item], {WIDGET: _repo_data(WIDGET)})
    assert item.oss is False


def test_merge_is_idempotent():
    org = Organization(generated_at=NOW, name="Acme")
    github_data = {WIDGET: _repo_data(WIDGET, "Apache-2.0")}
    item = _item()
    merge.merge_external_data([item], {ACME_CB: org}, github_data)
    first = item.to_dict()
    merge.merge_external_data([item], {ACME_CB: org}, github_data)
    assert item.to_dict() == first
    assert first["oss"] is True
    assert first["crunchbase_data"]["name"] == "Acme"
