"""Deduplication, intraday filtering and rollups for NSE bulk/block deal disclosures."""
from __future__ import annotations

__version__ = "0.1.0"
