"""
Rendering Context

Responsibilities:
- Resolves paper profiles and page margins
- Plans how one tall capture is sliced into pages
- Composites margin-padded page images and writes them to a PDF
- Verifies the written page count

Owns: pagination, page assembly, document writing, export orchestration
Never: Touches the source document (capture context owns the clone)
"""

from quire.contexts.rendering.assembler import PageImage, assemble_pages, iter_page_images
from quire.contexts.rendering.exceptions import ExportError
from quire.contexts.rendering.exporter import ExportResult, export_preview, generate_resume_pdf
from quire.contexts.rendering.pagination import PageSlice, PaginationPlan, plan_pages, plan_slices
from quire.contexts.rendering.paper import (
    PAPER_PROFILES,
    TALLEST_PAPER,
    MarginProfile,
    PaperProfile,
    get_paper_profile,
    resolve_page_margins,
)
from quire.contexts.rendering.settings import ExportSettings, load_export_settings
from quire.contexts.rendering.writer import DocumentWriter, ReportLabDocumentWriter

__all__ = [
    "PAPER_PROFILES",
    "TALLEST_PAPER",
    "DocumentWriter",
    "ExportError",
    "ExportResult",
    "ExportSettings",
    "MarginProfile",
    "PageImage",
    "PageSlice",
    "PaginationPlan",
    "PaperProfile",
    "ReportLabDocumentWriter",
    "assemble_pages",
    "export_preview",
    "generate_resume_pdf",
    "get_paper_profile",
    "iter_page_images",
    "load_export_settings",
    "plan_pages",
    "plan_slices",
    "resolve_page_margins",
]
