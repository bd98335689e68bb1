"""Typed option objects shared across extraction use-cases."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from x3f_extract.types import ColorEncoding, OutputKind

DEFAULT_MAX_MATRIX_ELEMENTS = 100


@dataclass(frozen=True)
class ProcessingOptions:
    """Pixel-processing configuration for outputs that render the sensor block.

    ``legacy_offset`` set to ``None`` means the offset is chosen automatically
    from the container's own black level.
    """

    color_encoding: ColorEncoding = ColorEncoding.NONE
    crop: bool = False
    denoise: bool = False
    white_balance: str | None = None
    use_accelerator: bool = False
    legacy_offset: int | None = None

    @property
    def auto_legacy_offset(self) -> bool:
        """Whether the legacy offset is left to the collaborator."""
        return self.legacy_offset is None


@dataclass(frozen=True)
class ExecutionConfig:
    """Execution plan for one batch, built once from the command line."""

    output_kind: OutputKind = OutputKind.DNG
    output_dir: Path | None = None
    processing: ProcessingOptions = field(default_factory=ProcessingOptions)
    max_matrix_elements: int = DEFAULT_MAX_MATRIX_ELEMENTS
