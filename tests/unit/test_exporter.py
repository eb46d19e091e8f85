"""Unit tests for the end-to-end export pipeline with fake capture substrates."""

import asyncio

import pytest
from conftest import FakeNode, FakeRasterizer, RecordingWriter

from quire.contexts.capture import CaptureError, CaptureSettings, ContentPadding
from quire.contexts.rendering import (
    ExportError,
    ExportSettings,
    generate_resume_pdf,
    load_export_settings,
)
from quire.contexts.rendering.exporter import minimum_capture_height, select_paper
from quire.contexts.rendering.paper import PAPER_PROFILES, MarginProfile
from quire.utils.outcome import Fallback
from quire.utils.pdf_processing import page_sizes_mm

NO_MARGINS = {"top": 0, "right": 0, "bottom": 0, "left": 0}


def settings(min_height_paper=None, pixel_ratio=1.0):
    return ExportSettings(
        capture=CaptureSettings(pixel_ratio=pixel_ratio),
        default_margins={"A4": MarginProfile(), "legal": MarginProfile()},
        margin_presets={"0.5": 48},
        min_height_paper=min_height_paper,
    )


def export(node, file_name, stage, rasterizer, **kwargs):
    kwargs.setdefault("settings", settings())
    return asyncio.run(
        generate_resume_pdf(node, file_name, stage=stage, rasterizer=rasterizer, **kwargs)
    )


@pytest.mark.unit
def test_three_page_export(stage, rasterizer, writer):
    """Test a 3000px preview on A4 without margins becomes three pages."""
    node = FakeNode(width=600, height=3000)

    result = export(node, "resume.pdf", stage, rasterizer, page_margins=NO_MARGINS, writer=writer)

    assert result.success
    assert result.page_count == 3
    assert result.paper == "A4"
    assert [e[0] for e in writer.events].count("add_image") == 3
    assert [e[0] for e in writer.events].count("add_page") == 2
    assert writer.events[-1] == ("save", "resume.pdf")


@pytest.mark.unit
def test_short_content_single_page_at_tallest_height(stage, rasterizer, writer):
    """Test short content forced to the tallest paper height exports one legal page."""
    node = FakeNode(width=600, height=500, padding=ContentPadding(24, 24))

    result = export(
        node,
        "resume.pdf",
        stage,
        rasterizer,
        paper_size="legal",
        writer=writer,
        settings=settings(min_height_paper="legal"),
    )

    assert stage.clone.height == pytest.approx(1344.0)
    assert result.page_count == 1


@pytest.mark.unit
def test_short_content_on_selected_paper(stage, rasterizer, writer):
    """Test min_height_paper=None forces the selected paper's height."""
    node = FakeNode(width=600, height=500, padding=ContentPadding(24, 24))

    result = export(node, "resume.pdf", stage, rasterizer, writer=writer)

    assert stage.clone.height == pytest.approx(PAPER_PROFILES["A4"].height_px)
    assert result.page_count == 1


@pytest.mark.unit
@pytest.mark.parametrize("paper_size", ["short", "A4", "legal"])
def test_short_content_single_page_with_packaged_settings(
    paper_size, stage, rasterizer, writer, monkeypatch
):
    """Test short content exports one page on every paper with the packaged settings."""
    monkeypatch.delenv("QUIRE_EXPORT_SETTINGS", raising=False)
    node = FakeNode(width=794, height=500, padding=ContentPadding(24, 24))

    result = export(
        node,
        "resume.pdf",
        stage,
        rasterizer,
        paper_size=paper_size,
        writer=writer,
        settings=load_export_settings(),
    )

    assert stage.clone.height == pytest.approx(PAPER_PROFILES[paper_size].height_px)
    assert result.page_count == 1
    assert [e[0] for e in writer.events].count("add_page") == 0


@pytest.mark.unit
def test_writes_real_pdf(tmp_path, stage, rasterizer):
    """Test the default writer produces a PDF with one A4 page per slice."""
    node = FakeNode(width=600, height=3000)

    result = export(node, tmp_path / "out" / "resume", stage, rasterizer, page_margins=NO_MARGINS)

    assert result.pdf_path == tmp_path / "out" / "resume.pdf"
    assert result.page_count == 3
    assert result.warnings == []
    for width, height in page_sizes_mm(result.pdf_path):
        assert (width, height) == pytest.approx((210.0, 297.0), abs=0.5)


@pytest.mark.unit
def test_unreadable_pdf_fails_export(tmp_path, stage, rasterizer):
    """Test a written PDF that cannot be read back is reported as a failed export."""

    class CorruptWriter(RecordingWriter):
        def save(self, file_name):
            super().save(file_name)
            file_name.write_bytes(b"not a pdf")
            return file_name

    output = tmp_path / "resume.pdf"
    result = export(
        FakeNode(600, 900), output, stage, rasterizer, page_margins=NO_MARGINS, writer=CorruptWriter()
    )

    assert not result.success
    assert result.pdf_path == tmp_path / "resume.pdf"
    assert result.page_count == 1
    assert any("could not be read back" in err for err in result.errors)


@pytest.mark.unit
def test_missing_node_raises(stage, rasterizer, writer):
    """Test a missing preview node raises ExportError before any work."""
    with pytest.raises(ExportError, match="not available"):
        export(None, "resume.pdf", stage, rasterizer, writer=writer)

    assert stage.calls == []
    assert writer.events == []


@pytest.mark.unit
def test_unknown_paper_falls_back_to_a4(stage, rasterizer, writer):
    """Test an unknown paper size exports on A4 with a warning."""
    result = export(
        FakeNode(600, 900), "resume.pdf", stage, rasterizer, paper_size="tabloid", writer=writer
    )

    assert result.paper == "A4"
    assert writer.events[0] == ("new_document", "a4")
    assert any("tabloid" in warning for warning in result.warnings)


@pytest.mark.unit
def test_missing_padding_degrades(stage, rasterizer, writer):
    """Test unknown content padding still exports, with a warning."""
    node = FakeNode(width=600, height=3000, padding=None)

    result = export(node, "resume.pdf", stage, rasterizer, writer=writer)

    assert result.page_count == 3
    assert any("padding" in warning for warning in result.warnings)


@pytest.mark.unit
def test_capture_failure_propagates(stage, writer):
    """Test rasterization failing twice aborts the export."""
    rasterizer = FakeRasterizer(failures=[RuntimeError("a"), RuntimeError("b")])

    with pytest.raises(CaptureError):
        export(FakeNode(600, 900), "resume.pdf", stage, rasterizer, writer=writer)

    assert writer.events == []


@pytest.mark.unit
def test_select_paper():
    """Test paper selection degrades unknown sizes to A4."""
    assert select_paper("legal").value is PAPER_PROFILES["legal"]

    outcome = select_paper("B5")
    assert not outcome.ok
    assert outcome.value is PAPER_PROFILES["A4"]
    assert outcome.fallback == Fallback.DEFAULT_PAPER


@pytest.mark.unit
def test_minimum_capture_height():
    """Test the configured minimum-height paper wins over the selected paper."""
    a4 = PAPER_PROFILES["A4"]

    assert minimum_capture_height(settings("legal"), a4) == pytest.approx(1344.0)
    assert minimum_capture_height(settings(None), a4) == pytest.approx(a4.height_px)
