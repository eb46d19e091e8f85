"""
Logging for pagination, page assembly and export.

Messages carry a [render] prefix. Rendering modules log through these helpers
rather than importing loguru directly.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from quire.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(
    log_dir: Optional[Path], paper: str = "", verbose: bool = False
) -> Optional[Path]:
    """
    Setup logger for an export session.

    Args:
        log_dir: Directory for this export session (None = console only)
        paper: Selected paper profile, recorded in the provenance header
        verbose: Echo DEBUG messages to the console

    Returns:
        Path to log file, or None when logging to console only

    Example:
        from quire.contexts.rendering.logger import setup_rendering_logger

        log_file = setup_rendering_logger(log_dir, paper="A4")
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Paper": paper} if paper else None,
        console_level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_export_start(file_name: str, paper: str, margins: dict) -> None:
    """Log start of an export with its paper and margin selection."""
    _log_info(f"Starting export: {file_name}")
    _log_debug(f"  Paper: {paper}")
    _log_debug(f"  Margins: {margins}")


def log_pagination_plan(plan) -> None:
    """
    Log a pagination plan.

    Args:
        plan: PaginationPlan from plan_pages()
    """
    _log_info(f"Planned {plan.page_count} pages for {plan.content_height_px}px of content")
    _log_debug(f"  Inner page height: {plan.inner_page_height_px}px")
    _log_debug(f"  Width scale: {plan.width_scale:.4f}, capture scale: {plan.capture_scale:.2f}")
    _log_debug(f"  Synthetic margins: {plan.top_band_px}px top, {plan.bottom_band_px}px bottom")


def log_export_result(
    file_name: str,
    result,  # ExportResult
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log export result with diagnostics.

    Args:
        file_name: Output file name
        result: ExportResult from generate_resume_pdf()
        elapsed_time: Time taken to export
        verbose: List every warning instead of the first few
    """
    if result.success:
        _log_success(
            f"{file_name}: {result.page_count} pages, "
            f"{len(result.warnings)} warnings ({elapsed_time:.2f}s)"
        )
        if result.pdf_path:
            _log_debug(f"  PDF: {result.pdf_path}")
    else:
        _log_error(f"{file_name}: export failed ({elapsed_time:.2f}s)")
        for i, err in enumerate(result.errors, 1):
            _log_error(f"  Error {i}: {err}")

    shown = result.warnings if verbose else result.warnings[:3]
    for number, warning in enumerate(shown, 1):
        _log_debug(f"  Degradation {number}: {warning}")
    hidden = len(result.warnings) - len(shown)
    if hidden:
        _log_debug(f"  ({hidden} more; rerun with --verbose to list them)")
