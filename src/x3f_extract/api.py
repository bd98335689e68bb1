"""Public file-based extraction API (delegates to application use-cases)."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable
from typing import Optional

from x3f_extract.application.ports import ArtifactWriter
from x3f_extract.application.ports import ContainerLoader
from x3f_extract.application.results import BatchResult
from x3f_extract.application.use_cases import build_execution_config
from x3f_extract.application.use_cases import run_batch
from x3f_extract.types import ColorEncoding
from x3f_extract.types import OutputKind


def extract_files(
    input_paths: Iterable[Path | str],
    output_kind: OutputKind | str = OutputKind.DNG,
    output_dir: Optional[Path | str] = None,
    color_encoding: ColorEncoding | str = ColorEncoding.NONE,
    crop: bool = False,
    denoise: bool = False,
    white_balance: Optional[str] = None,
    use_accelerator: bool = False,
    legacy_offset: Optional[int] = None,
    max_matrix_elements: int = 100,
    loader: Optional[ContainerLoader] = None,
    writer: Optional[ArtifactWriter] = None,
) -> BatchResult:
    """Convert a batch of files with validated options."""
    config = build_execution_config(
        output_kind=output_kind,
        output_dir=output_dir,
        color_encoding=color_encoding,
        crop=crop,
        denoise=denoise,
        white_balance=white_balance,
        use_accelerator=use_accelerator,
        legacy_offset=legacy_offset,
        max_matrix_elements=max_matrix_elements,
    )
    return run_batch(input_paths, config, loader=loader, writer=writer)
