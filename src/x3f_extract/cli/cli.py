#!/usr/bin/env python3
"""
x3f_extract.cli.cli

Typer-based CLI for extracting images and metadata from RAW photo containers.

The command keeps the classic single-dash switch syntax
(``x3f-extract -dng -o out/ a.x3f b.x3f``). Raw tokens are forwarded to
:func:`x3f_extract.cli.switches.parse_switches`, so typer only handles
``--help`` and ``--debug``.

Examples
--------
Install the CLI with the LibRaw backend:

    uv pip install -e ".[raw]"

Dump DNGs next to the inputs:

    x3f-extract a.x3f b.x3f

Dump sRGB TIFFs into another directory:

    x3f-extract -tiff -color sRGB -o /tmp/out a.x3f
"""

from __future__ import annotations

import logging
import sys
import traceback
from collections.abc import Sequence
from dataclasses import dataclass

import typer

from x3f_extract.application import run_batch
from x3f_extract.application.options import ProcessingOptions
from x3f_extract.application.ports import ArtifactWriter, ContainerLoader
from x3f_extract.application.results import ConversionOutcome
from x3f_extract.cli.switches import parse_switches, usage
from x3f_extract.errors import UsageError, X3FExtractError
from x3f_extract.handlers import create_default_registry

logger = logging.getLogger("x3f_extract")

app = typer.Typer(
    name="x3f-extract",
    help="Extract DNG, TIFF, PPM, histograms, previews and metadata from RAW photo files.",
    add_completion=False,
)


# -----------------------------
# Dependency checks / utilities
# -----------------------------
@dataclass(frozen=True)
class MissingDep:
    """Represent a missing optional dependency."""

    import_name: str
    extra_name: str
    purpose: str


def _is_importable(module: str) -> bool:
    """Check whether a module can be resolved.

    Parameters
    ----------
    module : str
        Module name to resolve.

    Returns
    -------
    bool
        ``True`` if the module can be imported, otherwise ``False``.
    """
    import importlib.util

    try:
        return importlib.util.find_spec(module) is not None
    except (ImportError, ValueError):
        return False


def _require_deps(missing: Sequence[MissingDep]) -> None:
    """Raise if any required deps are missing.

    Parameters
    ----------
    missing : Sequence[MissingDep]
        Dependency requirements for the default backend.

    Raises
    ------
    X3FExtractError
        With install hints for every dependency that cannot be resolved.
    """
    not_found = [d for d in missing if not _is_importable(d.import_name)]
    if not not_found:
        return

    extras = sorted({d.extra_name for d in not_found})
    details = "\n".join(
        f"- Missing '{d.import_name}' ({d.purpose}). Install extra: .[{d.extra_name}]"
        for d in not_found
    )
    uv_hint = f'uv pip install -e ".[{",".join(extras)}]"'
    pip_hint = f'pip install "x3f-extract[{",".join(extras)}]"'
    raise X3FExtractError(
        "Missing optional dependencies for this command.\n\n"
        f"{details}\n\n"
        "Install with uv (recommended):\n"
        f"  {uv_hint}\n\n"
        "Or with pip:\n"
        f"  {pip_hint}\n"
    )


def _create_collaborators() -> tuple[ContainerLoader, ArtifactWriter]:
    """Build the default LibRaw-backed loader and writer."""
    _require_deps(
        [
            MissingDep("rawpy", "raw", "RAW container decoding"),
            MissingDep("tifffile", "raw", "TIFF and DNG output"),
        ]
    )
    from x3f_extract.adapters.loaders import RawpyContainerLoader
    from x3f_extract.adapters.writers import RawpyArtifactWriter

    return RawpyContainerLoader(), RawpyArtifactWriter()


def _configure_logging(debug: bool) -> None:
    """Send driver logs to stderr; DEBUG level when ``debug`` is set."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s" if debug else "%(message)s",
        stream=sys.stderr,
        force=True,
    )


def _print_error(exc: Exception, debug: bool) -> int:
    """Print a user-friendly error.

    Parameters
    ----------
    exc : Exception
        Exception raised while running the batch.
    debug : bool
        Whether to include traceback details.

    Returns
    -------
    int
        Process exit code.
    """
    typer.echo(f"✗ {type(exc).__name__}: {exc}", err=True)
    if debug:
        typer.echo("\nTraceback:", err=True)
        typer.echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
    code = getattr(exc, "exit_code", None)
    if isinstance(code, int) and code > 0:
        return code
    return 1


def _report_outcome(outcome: ConversionOutcome) -> None:
    if outcome.ok:
        logger.debug("done: %s", outcome.input_path)


# -----------------------------
# Command
# -----------------------------
@app.command(context_settings={"ignore_unknown_options": True})
def extract(
    args: list[str] | None = typer.Argument(
        None,
        metavar="<SWITCHES> <file1> ...",
        help="Single-dash switches (see below) followed by input files.",
        show_default=False,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        envvar="X3F_EXTRACT_DEBUG",
        help="Show debug logging and full tracebacks on error.",
    ),
) -> None:
    """Convert every input file into one output artifact.

    Exit status is 0 when every file was converted and committed, 1 on a
    usage error or when at least one file failed.
    """
    _configure_logging(debug)

    try:
        parsed = parse_switches(args or [])
    except UsageError as exc:
        typer.echo(str(exc), err=True)
        typer.echo(usage(), err=True)
        raise typer.Exit(code=exc.exit_code)

    handler = create_default_registry().get(parsed.config.output_kind)
    if not handler.consumes_pixels and parsed.config.processing != ProcessingOptions():
        logger.warning(
            "colour, crop, denoise, white balance and offset switches are ignored for %s output",
            parsed.config.output_kind,
        )

    try:
        loader, writer = _create_collaborators()
        result = run_batch(
            parsed.input_files,
            parsed.config,
            loader=loader,
            writer=writer,
            on_outcome=_report_outcome,
        )
    except X3FExtractError as exc:
        raise typer.Exit(code=_print_error(exc, debug))
    except Exception as exc:
        # Unexpected crash: still show a clean message; debug prints traceback.
        raise typer.Exit(code=_print_error(exc, debug))

    typer.echo(result.summary())
    raise typer.Exit(code=result.exit_code)


if __name__ == "__main__":
    app()
