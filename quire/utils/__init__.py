"""
Shared utilities for QUIRE.

Common functionality used across contexts:
- Logger setup with provenance
- Result-style step outcomes
- PDF inspection
- Timestamps for log and result directories
"""

from quire.utils.outcome import FALLBACK_POLICY, Fallback, Outcome
from quire.utils.timestamp import now, today

__all__ = ["FALLBACK_POLICY", "Fallback", "Outcome", "now", "today"]
