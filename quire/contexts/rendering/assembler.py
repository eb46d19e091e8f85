"""
Page Assembly

Executes a pagination plan against a capture. Each page is composited on a
white canvas with the plan's synthetic margin bands above and below its slice,
encoded as PNG, and handed to the document writer before the next page is
built, so at most one page buffer is alive at a time.
"""

import io
from dataclasses import dataclass
from typing import Iterator, List, Optional

from PIL import Image

from quire.contexts.capture.engine import CaptureResult
from quire.contexts.rendering.logger import _log_debug, _log_warning
from quire.contexts.rendering.pagination import PaginationPlan
from quire.contexts.rendering.paper import PX_TO_MM
from quire.contexts.rendering.writer import DocumentWriter
from quire.utils.outcome import Outcome

PAGE_BACKGROUND = "white"


@dataclass(frozen=True)
class PageImage:
    """
    One encoded output page.

    Attributes:
        index: Zero-based page index
        data: PNG bytes
        width_px: Canvas width
        height_px: Canvas height (slice plus both margin bands)
        x_mm: Horizontal offset on the paper (centers narrow content)
        width_mm: Placed width on the paper
        height_mm: Placed height on the paper, never more than the paper height
    """

    index: int
    data: bytes
    width_px: int
    height_px: int
    x_mm: float
    width_mm: float
    height_mm: float


def compose_page(
    capture: Image.Image,
    source_offset_px: int,
    slice_height_px: int,
    top_band_px: int,
    bottom_band_px: int,
) -> Image.Image:
    """Copy one slice onto a white canvas between the top and bottom margin bands."""
    width = capture.width
    page = Image.new("RGB", (width, slice_height_px + top_band_px + bottom_band_px), PAGE_BACKGROUND)
    region = capture.crop((0, source_offset_px, width, source_offset_px + slice_height_px))
    page.paste(region, (0, top_band_px))
    return page


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def iter_page_images(
    capture: CaptureResult, plan: PaginationPlan, skipped: Optional[List[Outcome]] = None
) -> Iterator[PageImage]:
    """
    Yield one PageImage per slice of the plan, in order.

    Slices with no height are skipped (and recorded in `skipped` if given).
    Page indices stay contiguous across skipped slices.
    """
    paper = plan.paper
    width_mm = min(paper.width_mm, plan.source_width_mm * plan.width_scale)
    x_mm = (paper.width_mm - width_mm) / 2 if width_mm < paper.width_mm else 0.0

    index = 0
    for position, page_slice in enumerate(plan.slices):
        if page_slice.slice_height_px <= 0:
            outcome = Outcome.degraded(
                "page_slice", f"Skipped empty slice {position} at {page_slice.source_offset_px}px"
            )
            _log_warning(outcome.warning)
            if skipped is not None:
                skipped.append(outcome)
            continue

        page = compose_page(
            capture.image,
            page_slice.source_offset_px,
            page_slice.slice_height_px,
            plan.top_band_px,
            plan.bottom_band_px,
        )
        height_mm = min(
            paper.height_mm,
            page.height / plan.capture_scale * PX_TO_MM * plan.width_scale,
        )

        yield PageImage(
            index=index,
            data=encode_png(page),
            width_px=page.width,
            height_px=page.height,
            x_mm=x_mm,
            width_mm=width_mm,
            height_mm=height_mm,
        )
        index += 1


def assemble_pages(
    capture: CaptureResult, plan: PaginationPlan, writer: DocumentWriter
) -> List[Outcome]:
    """
    Write every page of the plan to a document writer.

    The writer receives new_document() once, then for each page after the
    first add_page() followed by add_image().

    Returns:
        Outcomes for skipped slices (empty when every slice produced a page)
    """
    paper = plan.paper
    skipped: List[Outcome] = []
    writer.new_document(paper.format_tag)

    for page in iter_page_images(capture, plan, skipped):
        if page.index > 0:
            writer.add_page(paper.format_tag, "portrait")
        writer.add_image(page.data, page.x_mm, 0.0, page.width_mm, page.height_mm)
        _log_debug(
            f"Page {page.index + 1}: {page.width_px}x{page.height_px}px -> "
            f"{page.width_mm:.1f}x{page.height_mm:.1f}mm"
        )

    return skipped
