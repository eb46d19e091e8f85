"""Timestamp helpers for naming log and result directories."""

from datetime import datetime


def now() -> str:
    """Current local time as a path-safe stamp, e.g. '20251114_183540'."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def today() -> str:
    """Current local date, e.g. '2025-11-14'."""
    return datetime.now().strftime("%Y-%m-%d")
