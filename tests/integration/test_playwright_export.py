"""
Integration test for exporting a real preview page through headless Chromium.
Tests: HTML preview -> staged clone -> raster -> paginated PDF.

Skipped when Playwright's Chromium is not installed (`playwright install chromium`).
"""

import asyncio
from dataclasses import replace

import pytest

async_api = pytest.importorskip("playwright.async_api")

from quire.contexts.rendering import ExportError, export_preview, load_export_settings  # noqa: E402
from quire.utils.pdf_processing import page_count, page_sizes_mm  # noqa: E402

PREVIEW_HTML = """<!doctype html>
<html style="--accent: oklch(0.55 0.15 250)">
<head>
<meta charset="utf-8">
<style>
  @charset "utf-8";
  body { margin: 0; background: #eee; }
  #resume-preview { width: 760px; background: #fff; }
  .resume-content { padding: 24px 0; }
  .block { height: 400px; margin: 0 24px; border-bottom: 2px solid oklch(0.3 0 0); }
  h1 { color: var(--accent); }
</style>
</head>
<body>
  <div id="resume-preview" class="scale-75">
    <div class="resume-content">
      <h1 style="background: linear-gradient(oklch(1 0 0), oklab(0.9 0 0))">Jane Doe</h1>
      {blocks}
    </div>
  </div>
</body>
</html>
"""


def chromium_available() -> bool:
    async def launch_chromium():
        async with async_api.async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True)
            await browser.close()

    try:
        asyncio.run(launch_chromium())
    except Exception:
        return False
    return True


pytestmark = pytest.mark.skipif(not chromium_available(), reason="Chromium not installed")


def export_settings():
    return replace(load_export_settings(), content_selector=".resume-content")


def write_preview(tmp_path, block_count):
    html = PREVIEW_HTML.replace("{blocks}", '<div class="block">Section</div>' * block_count)
    path = tmp_path / "preview.html"
    path.write_text(html, encoding="utf-8")
    return path


@pytest.mark.integration
def test_long_preview_exports_multiple_pages(tmp_path):
    """Test a preview taller than a page is split across A4 pages."""
    source = write_preview(tmp_path, block_count=8)
    settings = export_settings()

    result = asyncio.run(
        export_preview(
            source,
            tmp_path / "resume.pdf",
            "#resume-preview",
            paper_size="A4",
            settings=settings,
        )
    )

    assert result.success
    assert result.page_count >= 3
    assert page_count(result.pdf_path) == result.page_count
    for width, height in page_sizes_mm(result.pdf_path):
        assert (width, height) == pytest.approx((210.0, 297.0), abs=0.5)


@pytest.mark.integration
def test_short_preview_exports_one_legal_page(tmp_path):
    """Test a short preview produces a single legal page."""
    source = write_preview(tmp_path, block_count=1)

    result = asyncio.run(
        export_preview(
            source,
            tmp_path / "short.pdf",
            "#resume-preview",
            paper_size="legal",
            settings=export_settings(),
        )
    )

    assert result.page_count == 1


@pytest.mark.integration
def test_missing_selector(tmp_path):
    """Test a selector that matches nothing raises ExportError."""
    source = write_preview(tmp_path, block_count=1)

    with pytest.raises(ExportError, match="no element matches"):
        asyncio.run(export_preview(source, tmp_path / "none.pdf", "#does-not-exist"))
