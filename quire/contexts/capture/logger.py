"""
Capture context logger.

Provides logging interface for the capture context with automatic [capture] prefix.
All capture modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[capture]"


def _log_info(message: str) -> None:
    """Log info message with [capture] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [capture] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [capture] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_capture_start(width: float, height: float, forced_height: float) -> None:
    """Log the natural box of the source node and any forced minimum height."""
    _log_info(f"Capturing node: {width:.0f}x{height:.0f}px")
    if forced_height > height:
        _log_debug(f"  Short content: forcing height to {forced_height:.0f}px")


def log_image_settle(total: int, failed: int) -> None:
    if total:
        _log_debug(f"Settled {total} images ({failed} failed to load)")


def log_raster_failure(attempt: str, error: BaseException) -> None:
    """Log one failed rasterization attempt."""
    _log_warning(f"Rasterization attempt '{attempt}' failed: {error}")


def log_capture_result(width_px: int, height_px: int, capture_scale: float) -> None:
    _log_info(f"Captured {width_px}x{height_px}px (scale {capture_scale:.2f})")
