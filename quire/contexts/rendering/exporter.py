"""
Resume PDF Export

Entry point that runs the whole pipeline for one preview node:
capture -> pagination plan -> page assembly -> document writer.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Union

from quire.contexts.capture.engine import capture_node
from quire.contexts.capture.interfaces import CaptureStage, Rasterizer
from quire.contexts.capture.playwright_backend import open_preview
from quire.contexts.rendering.assembler import assemble_pages
from quire.contexts.rendering.exceptions import ExportError
from quire.contexts.rendering.logger import (
    _log_warning,
    log_export_result,
    log_export_start,
    log_pagination_plan,
    setup_rendering_logger,
)
from quire.contexts.rendering.pagination import plan_pages
from quire.contexts.rendering.paper import (
    DEFAULT_PAPER,
    PAPER_PROFILES,
    TALLEST_PAPER,
    PaperProfile,
    get_paper_profile,
    resolve_page_margins,
)
from quire.contexts.rendering.settings import ExportSettings, load_export_settings
from quire.contexts.rendering.writer import DocumentWriter, ReportLabDocumentWriter
from quire.utils.outcome import Outcome
from quire.utils.pdf_processing import page_count

# Room around the tallest paper inside the off-screen staging container
STAGING_HEADROOM_PX = 56


@dataclass
class ExportResult:
    """
    Result of exporting a preview to PDF.

    Attributes:
        success: Whether a readable document was written
        pdf_path: Path to the written PDF (None if not written)
        page_count: Pages in the written PDF (planned pages if it cannot be read back)
        paper: Paper profile used
        warnings: Non-fatal degradations, in pipeline order
        errors: Problems with the written document (empty on success)
    """

    success: bool
    pdf_path: Optional[Path] = None
    page_count: Optional[int] = None
    paper: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def select_paper(paper_size: str) -> Outcome[PaperProfile]:
    """Look up a paper profile, degrading to A4 for unknown sizes."""
    paper = get_paper_profile(paper_size)
    if paper is not None:
        return Outcome.success(paper)
    return Outcome.degraded(
        "paper_size",
        f"Unknown paper size '{paper_size}'; using {DEFAULT_PAPER}",
        value=PAPER_PROFILES[DEFAULT_PAPER],
    )


def minimum_capture_height(settings: ExportSettings, paper: PaperProfile) -> float:
    """Layout height forced on short content."""
    if settings.min_height_paper is None:
        return paper.height_px
    forced = get_paper_profile(settings.min_height_paper) or TALLEST_PAPER
    return forced.height_px


async def generate_resume_pdf(
    node: Any,
    file_name: Union[str, Path],
    paper_size: str = DEFAULT_PAPER,
    page_margins: Any = None,
    *,
    stage: CaptureStage,
    rasterizer: Rasterizer,
    writer: Optional[DocumentWriter] = None,
    settings: Optional[ExportSettings] = None,
    log_dir: Optional[Path] = None,
    verbose: bool = False,
) -> ExportResult:
    """
    Export a preview node as a paginated PDF.

    Args:
        node: Preview node handle understood by `stage`
        file_name: Output PDF path
        paper_size: "short", "A4" or "legal"
        page_margins: Optional {top, right, bottom, left} in layout pixels;
                      missing sides use the paper's defaults
        stage: Capture staging area
        rasterizer: Rasterization primitive
        writer: Document writer (default: reportlab)
        settings: Export settings (default: loaded from export_settings.yaml)
        log_dir: Directory for a session log file (None = keep current logging setup)
        verbose: Log every warning and echo DEBUG output

    Returns:
        ExportResult describing the written document

    Raises:
        ExportError: If the node is missing
        CaptureError: If rasterization fails on every attempt
    """
    if node is None:
        raise ExportError("Preview node is not available.", file_name=str(file_name))

    settings = settings or load_export_settings()
    if log_dir is not None:
        setup_rendering_logger(log_dir, paper=paper_size, verbose=verbose)

    warnings: List[str] = []

    paper_outcome = select_paper(paper_size)
    paper = paper_outcome.value
    if not paper_outcome.ok:
        _log_warning(paper_outcome.warning)
        warnings.append(paper_outcome.warning)

    margins = resolve_page_margins(
        page_margins, settings.margins_for(paper.name), settings.max_margin_px
    )
    log_export_start(str(file_name), paper.name, margins.to_dict())
    start_time = time.time()

    capture = await capture_node(
        node,
        stage,
        rasterizer,
        settings.capture,
        min_height_px=minimum_capture_height(settings, paper),
    )
    warnings.extend(capture.warnings)

    padding = await stage.content_padding(node, settings.content_selector)
    plan = plan_pages(
        capture.height_px,
        capture.width_px,
        capture.capture_scale,
        paper,
        margins,
        padding,
    )
    log_pagination_plan(plan)
    for warning in plan.warnings:
        _log_warning(warning)
    warnings.extend(plan.warnings)

    writer = writer or ReportLabDocumentWriter(title=Path(file_name).stem)
    skipped = assemble_pages(capture, plan, writer)
    warnings.extend(outcome.warning for outcome in skipped)
    pdf_path = writer.save(file_name)

    expected_pages = plan.page_count - len(skipped)
    written_pages = page_count(pdf_path) if pdf_path is not None else None
    errors: List[str] = []
    if pdf_path is not None and written_pages is None:
        errors.append(f"Written PDF could not be read back: {pdf_path}")
    elif written_pages is not None and written_pages != expected_pages:
        message = f"Wrote {written_pages} pages, planned {expected_pages}"
        _log_warning(message)
        warnings.append(message)

    result = ExportResult(
        success=not errors,
        pdf_path=Path(pdf_path) if pdf_path is not None else None,
        page_count=written_pages if written_pages is not None else expected_pages,
        paper=paper.name,
        warnings=warnings,
        errors=errors,
    )
    log_export_result(str(file_name), result, time.time() - start_time, verbose=verbose)
    return result


async def export_preview(
    source: Union[str, Path],
    file_name: Union[str, Path],
    selector: str,
    paper_size: str = DEFAULT_PAPER,
    page_margins: Any = None,
    settings: Optional[ExportSettings] = None,
    log_dir: Optional[Path] = None,
    verbose: bool = False,
) -> ExportResult:
    """
    Open an HTML file or URL in headless Chromium and export one preview node.

    Args:
        source: HTML file path or URL holding the preview
        file_name: Output PDF path
        selector: CSS selector of the preview node
        paper_size: "short", "A4" or "legal"
        page_margins: Optional margins in layout pixels
        settings: Export settings (default: loaded from export_settings.yaml)
        log_dir: Directory for a session log file
        verbose: Log every warning and echo DEBUG output

    Raises:
        ExportError: If no element matches `selector`
        CaptureError: If rasterization fails on every attempt
    """
    settings = settings or load_export_settings()

    async with open_preview(
        source,
        container_height=TALLEST_PAPER.height_px + STAGING_HEADROOM_PX,
        background_color=settings.capture.background_color,
    ) as session:
        node = await session.select(selector)
        if node is None:
            raise ExportError(
                f"Preview node is not available: no element matches '{selector}'",
                file_name=str(file_name),
            )
        return await generate_resume_pdf(
            node,
            file_name,
            paper_size,
            page_margins,
            stage=session.stage,
            rasterizer=session.rasterizer,
            settings=settings,
            log_dir=log_dir,
            verbose=verbose,
        )
