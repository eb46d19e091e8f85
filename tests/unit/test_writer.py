"""Unit tests for the reportlab document writer."""

import pytest
from conftest import png_bytes

from quire.contexts.rendering.writer import ReportLabDocumentWriter, page_size
from quire.utils.pdf_processing import page_count, page_sizes_mm


@pytest.mark.unit
def test_writes_pages_with_their_sizes(tmp_path):
    """Test each page gets the requested paper size."""
    writer = ReportLabDocumentWriter(title="resume")
    image = png_bytes((40, 60))

    writer.new_document("a4")
    writer.add_image(image, 0, 0, 210, 297)
    writer.add_page("legal")
    writer.add_image(image, 10, 0, 190, 300)
    writer.add_page("letter")
    writer.add_image(image, 0, 0, 215.9, 100)
    pdf_path = writer.save(tmp_path / "resume.pdf")

    assert page_count(pdf_path) == 3
    sizes = page_sizes_mm(pdf_path)
    assert sizes[0] == pytest.approx((210.0, 297.0), abs=0.5)
    assert sizes[1] == pytest.approx((215.9, 355.6), abs=0.5)
    assert sizes[2] == pytest.approx((215.9, 279.4), abs=0.5)


@pytest.mark.unit
def test_save_adds_pdf_suffix_and_creates_directories(tmp_path):
    """Test the output path gets a .pdf suffix and its parents are created."""
    writer = ReportLabDocumentWriter()
    writer.new_document("a4")
    writer.add_image(png_bytes((10, 10)), 0, 0, 10, 10)

    pdf_path = writer.save(tmp_path / "nested" / "out" / "resume")

    assert pdf_path.name == "resume.pdf"
    assert pdf_path.exists()


@pytest.mark.unit
def test_requires_new_document():
    """Test writing before new_document() raises."""
    writer = ReportLabDocumentWriter()

    with pytest.raises(RuntimeError):
        writer.add_page("a4")


@pytest.mark.unit
def test_page_size_lookup():
    """Test format tags resolve to portrait or landscape point sizes."""
    width, height = page_size("A4")
    assert width < height

    width, height = page_size("a4", "landscape")
    assert width > height

    with pytest.raises(ValueError, match="Unknown page format"):
        page_size("tabloid")


@pytest.mark.unit
def test_page_count_of_unreadable_file(tmp_path):
    """Test page_count returns None for a non-PDF file."""
    bogus = tmp_path / "not.pdf"
    bogus.write_text("plain text")

    assert page_count(bogus) is None


@pytest.mark.unit
def test_page_sizes_missing_file(tmp_path):
    """Test page_sizes_mm raises for a missing file."""
    with pytest.raises(FileNotFoundError):
        page_sizes_mm(tmp_path / "missing.pdf")
