"""Unit tests for session logger setup."""

import sys

import pytest
from loguru import logger

from quire.contexts.rendering.exporter import ExportResult
from quire.contexts.rendering.logger import _log_warning, log_export_result, setup_rendering_logger


@pytest.fixture(autouse=True)
def restore_default_sink():
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.mark.unit
def test_session_log_file_has_provenance(tmp_path):
    """Test a session log file is created with provenance and prefixed messages."""
    log_file = setup_rendering_logger(tmp_path / "export_20250101_000000", paper="legal")
    _log_warning("Content padding unavailable")
    logger.complete()

    assert log_file == tmp_path / "export_20250101_000000" / "render.log"
    text = log_file.read_text()
    assert "Paper: legal" in text
    assert "[render] Content padding unavailable" in text


@pytest.mark.unit
def test_console_only_logging():
    """Test no file is created without a log directory."""
    assert setup_rendering_logger(None) is None


@pytest.mark.unit
def test_failed_export_result_logs_errors(tmp_path):
    """Test a failed export result logs each error."""
    log_file = setup_rendering_logger(tmp_path, paper="A4")
    result = ExportResult(
        success=False,
        pdf_path=tmp_path / "resume.pdf",
        page_count=2,
        errors=["Written PDF could not be read back"],
    )

    log_export_result("resume.pdf", result, 0.5)
    logger.complete()

    text = log_file.read_text()
    assert "[render] resume.pdf: export failed" in text
    assert "Error 1: Written PDF could not be read back" in text
