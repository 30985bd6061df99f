#!/usr/bin/env python3
"""
webp_converter.cli.cli

Typer-based CLI for converting raster images to WebP.

Examples
--------
Install core + CLI only:

    uv pip install -e ".[cli]"

Convert two files next to their originals at the default quality:

    webp-convert convert photo.jpg scan.png

Convert a directory tree into an existing output directory:

    webp-convert convert ./photos --recursive --output-dir ./webp --quality 75
"""

from __future__ import annotations

import logging
import sys
import traceback
from pathlib import Path

import typer

from webp_converter.application.results import BatchReport, ProgressEvent
from webp_converter.errors import ConversionError
from webp_converter.formats import SUPPORTED_EXTENSIONS

app = typer.Typer(
    name="webp-convert",
    help="Convert raster images (JPEG / PNG / BMP / ...) to WebP.",
    no_args_is_help=True,
)

EXIT_PARTIAL_FAILURE = 1


# -----------------------------
# Utilities
# -----------------------------
def _print_conversion_error(exc: Exception, debug: bool) -> int:
    """Print a user-friendly conversion error.

    Parameters
    ----------
    exc : Exception
        Exception raised during conversion.
    debug : bool
        Whether to include traceback details.

    Returns
    -------
    int
        Process exit code.
    """
    typer.echo(f"[red]✗ {type(exc).__name__}:[/red] {exc}", err=True)
    if debug:
        typer.echo("\n[dim]Traceback:[/dim]", err=True)
        typer.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int) and code > 0:
        return code
    return 1


def _print_progress(event: ProgressEvent) -> None:
    """Print one line per completed item."""
    result = event.result
    prefix = f"[{event.completed}/{event.total}]"
    if result.succeeded:
        typer.echo(f"{prefix} ✓ {result.input_path.name} -> {result.output_path}")
    else:
        typer.echo(f"{prefix} ✗ {result.input_path.name}: {result.reason}", err=True)


def _print_summary(report: BatchReport) -> None:
    """Print the aggregate batch outcome."""
    colour = "green" if report.failed == 0 else "yellow"
    typer.echo(
        f"[{colour}]Complete! {report.succeeded}/{report.total} files converted "
        f"successfully[/{colour}]"
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# -----------------------------
# Global options
# -----------------------------
@app.callback()
def _main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Show full tracebacks on error."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Initialize shared CLI state.

    Parameters
    ----------
    ctx : typer.Context
        Typer context object used to store shared state.
    debug : bool, default=False
        Whether to enable debug error output.
    verbose : bool, default=False
        Whether to log at DEBUG level.
    """
    _configure_logging(verbose)
    ctx.obj = {"debug": debug}


# -----------------------------
# Commands
# -----------------------------
@app.command("convert")
def convert_cmd(
    ctx: typer.Context,
    paths: list[Path] = typer.Argument(
        ...,
        exists=True,
        readable=True,
        help=(
            "Image files or directories to convert. Directories contribute their "
            f"image files ({', '.join(SUPPORTED_EXTENSIONS)}, ...)."
        ),
    ),
    quality: int = typer.Option(80, "--quality", "-q", help="WebP quality (1-100)."),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Existing directory for outputs. Defaults to each input's directory.",
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Worker pool size. Defaults to min(CPUs, files)."
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", help="Seconds before a single file is reported as timed out."
    ),
    recursive: bool = typer.Option(
        False, "--recursive", "-r", help="Descend into subdirectories of directory inputs."
    ),
) -> None:
    """Convert images to WebP, concurrently when given several.

    Parameters
    ----------
    ctx : typer.Context
        Typer context containing global options.
    paths : list[Path]
        Input files and/or directories.
    quality : int, default=80
        Lossy WebP quality.
    output_dir : Path | None, default=None
        Optional existing output directory.

    Notes
    -----
    - Existing outputs are overwritten.
    - Exit code is 0 when every file converted, 1 when some failed and 2 when
      the options were rejected before any file was touched.
    """
    debug: bool = bool(ctx.obj.get("debug", False))

    try:
        from webp_converter.api import convert_image_files_to_webp
        from webp_converter.paths import expand_inputs

        worklist = expand_inputs(paths, recursive=recursive)
        report = convert_image_files_to_webp(
            worklist,
            quality=quality,
            output_directory=output_dir,
            max_workers=workers,
            task_timeout=timeout,
            observer=_print_progress,
        )
    except ConversionError as exc:
        raise typer.Exit(code=_print_conversion_error(exc, debug))
    except Exception as exc:
        # Unexpected crash: still show a clean message; debug prints traceback.
        raise typer.Exit(code=_print_conversion_error(exc, debug))

    _print_summary(report)
    if report.failed:
        raise typer.Exit(code=EXIT_PARTIAL_FAILURE)


@app.command("doctor")
def doctor_cmd() -> None:
    """Print installed toolchain versions and WebP support."""
    import importlib.metadata as metadata

    typer.echo(f"Python: {sys.version.split()[0]}")
    for distribution in ("Pillow", "pydantic", "typer", "fastapi", "uvicorn"):
        try:
            typer.echo(f"{distribution}: {metadata.version(distribution)}")
        except metadata.PackageNotFoundError:
            typer.echo(f"{distribution}: <not installed>")

    from PIL import features

    if features.check("webp"):
        typer.echo("webp support: yes")
    else:
        typer.echo(
            "[yellow]webp support: no[/yellow] (Pillow was built without libwebp; "
            "conversions will fail in the encoding phase)"
        )


if __name__ == "__main__":
    app()
