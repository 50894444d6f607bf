"""Convenience shim to run only the enrichment workflow."""

from __future__ import annotations

import sys

from src.enrichment.runner import main as enrichment_main


if __name__ == "__main__":
    enrichment_main(sys.argv[1:])
