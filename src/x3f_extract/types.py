"""Shared enums, type aliases and protocols for the driver."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Protocol


class OutputKind(StrEnum):
    """Closed set of artifacts the driver can produce for one input."""

    RAW_BLOCK = "raw-block"
    TIFF = "tiff"
    DNG = "dng"
    PPM_ASCII = "ppm-ascii"
    PPM_BINARY = "ppm-binary"
    HISTOGRAM_LINEAR = "histogram-linear"
    HISTOGRAM_LOG = "histogram-log"
    JPEG_EXTRACT = "jpeg-extract"
    META_EXTRACT = "meta-extract"


class ColorEncoding(StrEnum):
    """Colour encodings understood by pixel-producing outputs."""

    NONE = "none"
    SRGB = "sRGB"
    ADOBE_RGB = "AdobeRGB"
    PROPHOTO_RGB = "ProPhotoRGB"
    UNPROCESSED = "unprocessed"
    QUATTRO_TOP = "quattro-top"


class FailureStage(StrEnum):
    """Stage of the per-file pipeline at which a failure happened."""

    OPEN_INPUT = "open-input"
    DECODE = "decode"
    PRODUCE_OUTPUT = "produce-output"
    COMMIT = "commit"


class Container(Protocol):
    """Parsed top-level structure of one input file."""

    def close(self) -> None:
        """Release decoder resources held by the container."""


type MetadataScalar = str | int | float | bool | None
type MetadataValue = MetadataScalar | Sequence["MetadataValue"]
type MetadataMap = Mapping[str, MetadataValue]
