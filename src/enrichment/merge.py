"""Fold collected Crunchbase and GitHub snapshots back into landscape items."""

from __future__ import annotations

from typing import Dict, Iterable

from .models import LandscapeItem, Organization, RepositoryData


def add_crunchbase_data(items: Iterable[LandscapeItem], crunchbase_data: Dict[str, Organization]) -> None:
    """Attach each item's Organization snapshot, looked up by its profile url."""
    for item in items:
        if not item.crunchbase_url:
            continue
        org = crunchbase_data.get(item.crunchbase_url)
        if org is not None:
            item.crunchbase_data = org


def add_github_data(items: Iterable[LandscapeItem], github_data: Dict[str, RepositoryData]) -> None:
    """Attach repository snapshots and flag items whose primary repo has a license."""
    for item in items:
        for repo in item.repositories:
            repo_data = github_data.get(repo.url)
            if repo_data is not None:
                repo.github_data = repo_data

        if any(repo.github_data and repo.github_data.license for repo in item.primary_repositories()):
            item.oss = True


def merge_external_data(
    items: Iterable[LandscapeItem],
    crunchbase_data: Dict[str, Organization],
    github_data: Dict[str, RepositoryData],
) -> None:
    items = list(items)
    add_crunchbase_data(items, crunchbase_data)
    add_github_data(items, github_data)


__all__ = ["add_crunchbase_data", "add_github_data", "merge_external_data"]
