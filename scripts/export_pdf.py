#!/usr/bin/env python3
"""
Resume Preview Export CLI

Exports a browser-rendered resume preview to a paginated PDF.

Commands:
    export  - Export the preview node of an HTML file or URL to PDF
    presets - List paper profiles and margin presets

Examples:\n

    export_pdf.py export preview.html                                # A4, default margins

    export_pdf.py export preview.html --paper legal --margin-preset 0.5

    export_pdf.py export http://localhost:5173/preview -s "#resume" -o out/resume.pdf

    export_pdf.py presets
"""

import asyncio
import os
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from typing_extensions import Annotated

from quire.contexts.capture import CaptureError
from quire.contexts.rendering import (
    PAPER_PROFILES,
    ExportError,
    MarginProfile,
    export_preview,
    load_export_settings,
)
from quire.utils.timestamp import now, today

load_dotenv()
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))
RESULTS_PATH = Path(os.getenv("RESULTS_PATH", "outs/results"))


app = typer.Typer(
    help="Export resume previews to paginated PDFs",
    add_completion=False,
    invoke_without_command=True,
)


@app.callback()
def main(ctx: typer.Context):
    """Show help by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


@app.command("export")
def export_command(
    source: Annotated[
        str,
        typer.Argument(help="HTML file or URL containing the resume preview"),
    ],
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Output PDF path (default: RESULTS_PATH/YYYY-MM-DD/<source stem>.pdf)",
        ),
    ] = None,
    selector: Annotated[
        str,
        typer.Option("--selector", "-s", help="CSS selector of the preview node"),
    ] = "#resume-preview",
    paper: Annotated[
        str,
        typer.Option("--paper", "-p", help="Paper profile: short, A4 or legal"),
    ] = "A4",
    margin_preset: Annotated[
        Optional[str],
        typer.Option("--margin-preset", "-m", help="Named margin preset in inches (see 'presets')"),
    ] = None,
    margin: Annotated[
        Optional[int],
        typer.Option("--margin", help="Uniform margin in pixels (0-128); overrides --margin-preset"),
    ] = None,
    pixel_ratio: Annotated[
        Optional[float],
        typer.Option("--pixel-ratio", help="Capture oversampling factor (default from settings)", min=1.0),
    ] = None,
    settings_file: Annotated[
        Optional[Path],
        typer.Option("--settings", help="Export settings YAML overriding the packaged defaults"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug output and every warning"),
    ] = False,
):
    """
    Export a resume preview to PDF.

    Opens the source in headless Chromium, captures the node matched by
    --selector, and writes one PDF page per printable page height.

    Examples:\n

        $ export_pdf.py export preview.html                       # Default A4 export

        $ export_pdf.py export preview.html --paper short -m 1    # Letter, 1in margins

        $ export_pdf.py export preview.html --margin 0 -v         # No margins, verbose
    """
    if paper not in PAPER_PROFILES:
        typer.secho(f"Unknown paper '{paper}'. Choose from: {list(PAPER_PROFILES)}", fg=typer.colors.RED)
        raise typer.Exit(code=2)

    settings = load_export_settings(settings_file)
    if pixel_ratio is not None:
        settings = replace(settings, capture=replace(settings.capture, pixel_ratio=pixel_ratio))

    page_margins = None
    if margin is not None:
        page_margins = MarginProfile.uniform(margin)
    elif margin_preset is not None:
        try:
            page_margins = settings.preset_margins(margin_preset)
        except ValueError as e:
            typer.secho(str(e), fg=typer.colors.RED)
            raise typer.Exit(code=2)

    if output is None:
        output = RESULTS_PATH / today() / f"{Path(source).stem or 'resume'}.pdf"
    log_dir = LOGS_PATH / f"export_{now()}"

    typer.secho(f"\nExporting: {source}", fg=typer.colors.BLUE, bold=True)
    typer.echo(f"Paper: {paper}")
    typer.echo(f"Margins: {page_margins.to_dict() if page_margins else 'paper defaults'}")
    typer.echo("")

    try:
        result = asyncio.run(
            export_preview(
                source,
                output,
                selector,
                paper_size=paper,
                page_margins=page_margins,
                settings=settings,
                log_dir=log_dir,
                verbose=verbose,
            )
        )
    except (ExportError, CaptureError) as e:
        typer.secho(f"\n✗ Export failed: {e}", fg=typer.colors.RED, bold=True)
        typer.echo(f"Logs: {log_dir}")
        raise typer.Exit(code=1)

    if not result.success:
        typer.secho(f"\n✗ Export failed: {result.pdf_path}", fg=typer.colors.RED, bold=True)
        for err in result.errors:
            typer.echo(f"  {err}")
        typer.echo(f"Logs: {log_dir}")
        raise typer.Exit(code=1)

    typer.secho(f"\n✓ Exported {result.page_count} pages", fg=typer.colors.GREEN, bold=True)
    typer.echo(f"PDF: {result.pdf_path}")
    if result.warnings:
        typer.secho(f"{len(result.warnings)} warnings (see {log_dir})", fg=typer.colors.YELLOW)


@app.command("presets")
def presets_command(
    settings_file: Annotated[
        Optional[Path],
        typer.Option("--settings", help="Export settings YAML overriding the packaged defaults"),
    ] = None,
):
    """List paper profiles and margin presets."""
    settings = load_export_settings(settings_file)

    typer.secho("\nPaper profiles", bold=True)
    for paper in PAPER_PROFILES.values():
        typer.echo(
            f"  {paper.name:<6} {paper.width_mm:>6.1f} x {paper.height_mm:>6.1f} mm  "
            f"({paper.format_tag})"
        )

    typer.secho("\nMargin presets", bold=True)
    for preset_id, pixels in settings.margin_presets.items():
        typer.echo(f"  {preset_id:<5} in  {pixels:>3} px")


if __name__ == "__main__":
    app()
