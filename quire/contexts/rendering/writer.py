"""
Document writers.

DocumentWriter is the narrow interface the page assembler drives; positions
and sizes are in millimeters from the page's top-left corner.
ReportLabDocumentWriter writes a PDF with reportlab.
"""

import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple, Union

from reportlab.lib.pagesizes import A4, landscape, legal, letter, portrait
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from quire.contexts.rendering.logger import _log_debug

PAGE_SIZES = {
    "letter": letter,
    "a4": A4,
    "legal": legal,
}


class DocumentWriter(ABC):
    """Interface for multi-page document writers."""

    @abstractmethod
    def new_document(self, format_tag: str) -> None:
        """Start a document whose first page has the given format."""

    @abstractmethod
    def add_page(self, format_tag: str, orientation: str = "portrait") -> None:
        """Start a new page; subsequent images are placed on it."""

    @abstractmethod
    def add_image(
        self, data: bytes, x_mm: float, y_mm: float, width_mm: float, height_mm: float
    ) -> None:
        """Place an encoded image on the current page."""

    @abstractmethod
    def save(self, file_name: Union[str, Path]) -> Path:
        """Write the document and return its path."""


def page_size(format_tag: str, orientation: str = "portrait") -> Tuple[float, float]:
    """
    Page size in points for a writer format tag.

    Raises:
        ValueError: If the format tag is unknown
    """
    try:
        size = PAGE_SIZES[format_tag.lower()]
    except KeyError:
        raise ValueError(f"Unknown page format '{format_tag}'. Available: {list(PAGE_SIZES)}")
    return landscape(size) if orientation == "landscape" else portrait(size)


class ReportLabDocumentWriter(DocumentWriter):
    """
    PDF writer built on reportlab's canvas.

    The document is buffered in memory until save().
    """

    def __init__(self, title: Optional[str] = None):
        self.title = title
        self._buffer: Optional[io.BytesIO] = None
        self._canvas: Optional[canvas.Canvas] = None
        self._page_height_pt = 0.0

    def _require_canvas(self) -> canvas.Canvas:
        if self._canvas is None:
            raise RuntimeError("new_document() must be called before writing pages")
        return self._canvas

    def new_document(self, format_tag: str) -> None:
        size = page_size(format_tag)
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=size)
        if self.title:
            self._canvas.setTitle(self.title)
        self._page_height_pt = size[1]

    def add_page(self, format_tag: str, orientation: str = "portrait") -> None:
        pdf = self._require_canvas()
        size = page_size(format_tag, orientation)
        pdf.showPage()
        pdf.setPageSize(size)
        self._page_height_pt = size[1]

    def add_image(
        self, data: bytes, x_mm: float, y_mm: float, width_mm: float, height_mm: float
    ) -> None:
        pdf = self._require_canvas()
        # PDF origin is bottom-left; placement is given from the top-left
        y_pt = self._page_height_pt - (y_mm + height_mm) * mm
        pdf.drawImage(
            ImageReader(io.BytesIO(data)),
            x_mm * mm,
            y_pt,
            width=width_mm * mm,
            height=height_mm * mm,
        )

    def save(self, file_name: Union[str, Path]) -> Path:
        pdf = self._require_canvas()
        pdf.save()

        path = Path(file_name)
        if path.suffix.lower() != ".pdf":
            path = path.with_name(f"{path.name}.pdf")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self._buffer.getvalue())
        _log_debug(f"Wrote {path.stat().st_size} bytes to {path}")

        self._canvas = None
        self._buffer = None
        return path
