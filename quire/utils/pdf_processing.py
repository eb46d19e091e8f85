"""
PDF inspection helpers for verifying written exports.

Helper functions:
    page_count: Quick page count without full extraction.
    page_sizes_mm: Media box of every page, in millimeters.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from PyPDF2 import PdfReader

POINTS_TO_MM = 25.4 / 72


def page_count(pdf_path: Path) -> Optional[int]:
    """Get page count from PDF, or None if unreadable."""
    try:
        reader = PdfReader(str(pdf_path))
        return len(reader.pages)
    except Exception:
        return None


def page_sizes_mm(pdf_path: Path) -> List[Tuple[float, float]]:
    """
    Return (width, height) in millimeters for every page of a PDF.

    Raises:
        FileNotFoundError: If the PDF does not exist
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"PDF not found: {pdf_path}")

    reader = PdfReader(str(pdf_path))
    sizes = []
    for page in reader.pages:
        box = page.mediabox
        sizes.append((float(box.width) * POINTS_TO_MM, float(box.height) * POINTS_TO_MM))
    return sizes
