"""Pydantic schemas for runtime validation of extraction options."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from x3f_extract.types import ColorEncoding, OutputKind


class ExecutionConfigSchema(BaseModel):
    """Validated input for building an ``ExecutionConfig``."""

    model_config = ConfigDict(extra="forbid")

    output_kind: OutputKind = OutputKind.DNG
    output_dir: Path | None = None
    color_encoding: ColorEncoding = ColorEncoding.NONE
    crop: bool = False
    denoise: bool = False
    white_balance: str | None = None
    use_accelerator: bool = False
    legacy_offset: int | None = None
    max_matrix_elements: int = Field(default=100, ge=0)

    @field_validator("output_dir")
    @classmethod
    def _validate_output_dir(cls, value: Path | None) -> Path | None:
        if value is None:
            return None
        if not value.exists():
            raise ValueError(f"Could not find outdir {value}")
        if not value.is_dir():
            raise ValueError(f"Outdir {value} is not a directory")
        return value

    @field_validator("white_balance")
    @classmethod
    def _validate_white_balance(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("white balance preset cannot be empty.")
        return value
