"""Top-level API for extracting images and metadata from RAW photo files."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from x3f_extract.application.ports import ArtifactWriter, ContainerLoader
from x3f_extract.application.results import BatchResult
from x3f_extract.types import ColorEncoding, OutputKind

__version__ = "0.1.0"


def extract_files(
    input_paths: Iterable[Path | str],
    *,
    output_kind: OutputKind | str = OutputKind.DNG,
    output_dir: Path | str | None = None,
    color_encoding: ColorEncoding | str = ColorEncoding.NONE,
    crop: bool = False,
    denoise: bool = False,
    white_balance: str | None = None,
    use_accelerator: bool = False,
    legacy_offset: int | None = None,
    max_matrix_elements: int = 100,
    loader: ContainerLoader | None = None,
    writer: ArtifactWriter | None = None,
) -> BatchResult:
    """Convert each input file into one artifact of ``output_kind``.

    Parameters
    ----------
    input_paths : Iterable[Path | str]
        Input files, processed in order.
    output_kind : OutputKind | str, default=OutputKind.DNG
        Artifact kind produced for every file.
    output_dir : Path | str | None, default=None
        Existing directory receiving the outputs. ``None`` writes next to
        each input.
    color_encoding, crop, denoise, white_balance, use_accelerator, legacy_offset
        Processing options for outputs that render the sensor block.
    max_matrix_elements : int, default=100
        Cap on matrix elements printed per metadata entry.
    loader, writer : optional
        Collaborators replacing the default LibRaw backend.

    Returns
    -------
    BatchResult
        Number of files seen and number of failures.

    Raises
    ------
    UsageError
        If the options do not validate.
    """
    from .api import extract_files as _impl

    return _impl(
        input_paths,
        output_kind=output_kind,
        output_dir=output_dir,
        color_encoding=color_encoding,
        crop=crop,
        denoise=denoise,
        white_balance=white_balance,
        use_accelerator=use_accelerator,
        legacy_offset=legacy_offset,
        max_matrix_elements=max_matrix_elements,
        loader=loader,
        writer=writer,
    )


__all__ = ["BatchResult", "ColorEncoding", "OutputKind", "extract_files"]
