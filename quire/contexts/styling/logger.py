"""
Styling context logger.

Provides logging interface for the styling context with automatic [style] prefix.
All styling modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[style]"


def _log_info(message: str) -> None:
    """Log info message with [style] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [style] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [style] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_normalization_result(node_count: int, override_count: int, warnings: list) -> None:
    """Summarize one normalization pass over a styled tree."""
    _log_debug(f"Normalized {node_count} nodes: {override_count} style overrides")
    for warning in warnings:
        _log_warning(warning)
