"""
Pagination Planning

Pure function of (capture size, capture scale, paper, margins, content padding)
to an ordered slice plan. No pixels are touched here.

The continuous capture carries the preview's page padding only once, at its
very top and bottom. The plan skips that padding and instead asks the page
assembler to add synthetic top/bottom margin bands to every page.

Units:
    layout px  - CSS pixels at 96 DPI (margins, padding)
    capture px - raster pixels = layout px * capture_scale (slices, bands)
    mm         - physical paper units
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional

from quire.contexts.capture.interfaces import ContentPadding
from quire.contexts.rendering.paper import PX_TO_MM, MarginProfile, PaperProfile
from quire.utils.outcome import Outcome


@dataclass(frozen=True)
class PageSlice:
    """Contiguous row range [source_offset_px, end_offset_px) of the capture."""

    source_offset_px: int
    slice_height_px: int

    @property
    def end_offset_px(self) -> int:
        return self.source_offset_px + self.slice_height_px


@dataclass
class PaginationPlan:
    """
    Slice plan for one capture.

    Attributes:
        slices: One slice per output page, in order
        paper: Selected paper profile
        capture_scale: Raster pixels per layout pixel
        width_scale: Shrink factor fitting the content width to the paper (<= 1)
        source_width_mm: Natural content width in millimeters
        inner_page_height_px: Capture rows that fit in one page's printable area
        start_offset_px: First capture row of content (top padding skipped)
        content_height_px: Capture rows to paginate
        top_band_px: Synthetic top margin added to every page, capture px
        bottom_band_px: Synthetic bottom margin added to every page, capture px
        degradations: Fallbacks taken while planning
    """

    slices: List[PageSlice]
    paper: PaperProfile
    capture_scale: float
    width_scale: float
    source_width_mm: float
    inner_page_height_px: int
    start_offset_px: int
    content_height_px: int
    top_band_px: int = 0
    bottom_band_px: int = 0
    degradations: List[Outcome] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.slices)

    @property
    def warnings(self) -> List[str]:
        return [outcome.warning for outcome in self.degradations]


def compute_width_scale(paper_width_mm: float, source_width_mm: float) -> float:
    """Scale that fits the content width to the paper, never enlarging."""
    if not source_width_mm or source_width_mm <= 0 or not math.isfinite(source_width_mm):
        return 1.0
    return min(1.0, paper_width_mm / source_width_mm)


def plan_slices(
    content_height_px: int, inner_page_height_px: int, start_offset_px: int = 0
) -> List[PageSlice]:
    """
    Cut [start, start + content) into page-sized slices.

    The last slice may be shorter than a page. Slice lengths always sum to
    content_height_px, and at least one slice is produced.

    Example:
        >>> [s.slice_height_px for s in plan_slices(3000, 1123)]
        [1123, 1123, 754]
    """
    page_height = max(1, int(inner_page_height_px))
    content = max(0, int(content_height_px))
    page_count = max(1, math.ceil(content / page_height))

    slices = []
    for index in range(page_count):
        begin = index * page_height
        end = min((index + 1) * page_height, content)
        slices.append(PageSlice(start_offset_px + begin, end - begin))
    return slices


def _valid_padding(padding: Optional[ContentPadding]) -> bool:
    if padding is None:
        return False
    return all(
        isinstance(value, (int, float)) and math.isfinite(value) and value >= 0
        for value in (padding.top, padding.bottom)
    )


def plan_pages(
    height_px: int,
    width_px: int,
    capture_scale: float,
    paper: PaperProfile,
    margins: MarginProfile,
    padding: Optional[ContentPadding],
) -> PaginationPlan:
    """
    Plan how a capture is split into pages.

    Args:
        height_px: Capture height in raster pixels
        width_px: Capture width in raster pixels
        capture_scale: Raster pixels per layout pixel
        paper: Selected paper profile
        margins: Resolved margins (only top/bottom are used)
        padding: Padding of the printable content node, None if unknown

    Returns:
        PaginationPlan; never raises for bad padding or margins, it degrades
        to full-page, zero-margin pagination instead
    """
    degradations: List[Outcome] = []

    if not capture_scale or capture_scale <= 0 or not math.isfinite(capture_scale):
        capture_scale = 1.0

    source_width_mm = width_px / capture_scale * PX_TO_MM
    width_scale = compute_width_scale(paper.width_mm, source_width_mm)

    margins_apply = _valid_padding(padding)
    if not margins_apply:
        degradations.append(
            Outcome.degraded(
                "content_padding",
                "Content padding unavailable; paginating the whole capture without margins",
            )
        )

    top_mm = margins.top * PX_TO_MM * width_scale if margins_apply else 0.0
    bottom_mm = margins.bottom * PX_TO_MM * width_scale if margins_apply else 0.0
    inner_mm = paper.height_mm - top_mm - bottom_mm
    if inner_mm <= 0:
        degradations.append(
            Outcome.degraded(
                "printable_height",
                f"Margins leave no printable height on {paper.name}; using the full page",
            )
        )
        inner_mm = paper.height_mm
        margins_apply = False

    inner_page_height_px = max(1, int(round(inner_mm / PX_TO_MM / width_scale * capture_scale)))

    start_offset_px = 0
    content_height_px = int(height_px)
    if _valid_padding(padding):
        top_padding_px = int(round(padding.top * capture_scale))
        bottom_padding_px = int(round(padding.bottom * capture_scale))
        padded_content = int(height_px) - top_padding_px - bottom_padding_px
        if padded_content > 0:
            start_offset_px = top_padding_px
            content_height_px = padded_content
        else:
            degradations.append(
                Outcome.degraded(
                    "content_padding",
                    "Content padding exceeds capture height; paginating the whole capture",
                )
            )

    return PaginationPlan(
        slices=plan_slices(content_height_px, inner_page_height_px, start_offset_px),
        paper=paper,
        capture_scale=capture_scale,
        width_scale=width_scale,
        source_width_mm=source_width_mm,
        inner_page_height_px=inner_page_height_px,
        start_offset_px=start_offset_px,
        content_height_px=content_height_px,
        top_band_px=int(round(margins.top * capture_scale)) if margins_apply else 0,
        bottom_band_px=int(round(margins.bottom * capture_scale)) if margins_apply else 0,
        degradations=degradations,
    )
