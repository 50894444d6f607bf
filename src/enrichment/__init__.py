"""Landscape enrichment: Crunchbase and GitHub metadata collection with caching."""

from .runner import enrich_items, main

__all__ = ["enrich_items", "main"]
