"""Application-layer use-cases and option objects."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from x3f_extract.application.options import ExecutionConfig, ProcessingOptions
from x3f_extract.application.ports import (
    ArtifactWriter,
    ContainerLoader,
    OutputCommitter,
)
from x3f_extract.application.results import (
    BatchResult,
    ConversionFailure,
    ConversionOutcome,
    ConversionSuccess,
)

if TYPE_CHECKING:
    from x3f_extract.handlers.registry import HandlerRegistry


def convert_file(
    input_path: Path,
    config: ExecutionConfig,
    *,
    loader: ContainerLoader | None = None,
    writer: ArtifactWriter | None = None,
    committer: OutputCommitter | None = None,
    registry: HandlerRegistry | None = None,
) -> ConversionOutcome:
    """Convert one input file via lazy use-case import."""
    from x3f_extract.application.use_cases import convert_file as _impl

    return _impl(
        input_path,
        config,
        loader=loader,
        writer=writer,
        committer=committer,
        registry=registry,
    )


def run_batch(
    input_paths: Iterable[Path | str],
    config: ExecutionConfig,
    *,
    loader: ContainerLoader | None = None,
    writer: ArtifactWriter | None = None,
    committer: OutputCommitter | None = None,
    registry: HandlerRegistry | None = None,
    on_outcome: Callable[[ConversionOutcome], None] | None = None,
) -> BatchResult:
    """Convert a batch of input files via lazy use-case import."""
    from x3f_extract.application.use_cases import run_batch as _impl

    return _impl(
        input_paths,
        config,
        loader=loader,
        writer=writer,
        committer=committer,
        registry=registry,
        on_outcome=on_outcome,
    )


__all__ = [
    "ExecutionConfig",
    "ProcessingOptions",
    "BatchResult",
    "ConversionFailure",
    "ConversionOutcome",
    "ConversionSuccess",
    "convert_file",
    "run_batch",
]
