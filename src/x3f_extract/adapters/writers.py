"""Artifact writers implementing the ``ArtifactWriter`` port."""

from __future__ import annotations

import csv
import logging
import math
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import numpy as np

from x3f_extract.adapters.loaders import RawpyContainer, as_rawpy_container
from x3f_extract.application.options import ProcessingOptions
from x3f_extract.errors import ProduceError
from x3f_extract.types import ColorEncoding, Container, MetadataValue

logger = logging.getLogger(__name__)

MAX_SAMPLE = 65535
DNG_CAMERA_MODEL = "x3f-extract"
RATIONAL_SCALE = 10000

_COLOR_SPACE_NAMES: dict[ColorEncoding, str] = {
    ColorEncoding.NONE: "raw",
    ColorEncoding.SRGB: "sRGB",
    ColorEncoding.ADOBE_RGB: "Adobe",
    ColorEncoding.PROPHOTO_RGB: "ProPhoto",
}

_CAMERA_WB = {"use_camera_wb": True}
_AUTO_WB = {"use_auto_wb": True}


def _flatten(value: MetadataValue) -> list[MetadataValue]:
    if isinstance(value, (list, tuple)):
        flat: list[MetadataValue] = []
        for item in value:
            flat.extend(_flatten(item))
        return flat
    return [value]


def format_metadata_value(value: MetadataValue, max_matrix_elements: int) -> str:
    """Render one metadata value, capping matrices at ``max_matrix_elements``."""
    if not isinstance(value, (list, tuple)):
        return str(value)
    flat = _flatten(value)
    shown = ", ".join(str(item) for item in flat[:max_matrix_elements])
    if len(flat) > max_matrix_elements:
        hidden = len(flat) - max_matrix_elements
        shown = f"{shown}, ... ({hidden} more)" if shown else f"... ({hidden} more)"
    return f"[{shown}]"


def format_metadata(
    properties: Mapping[str, MetadataValue],
    camera_metadata: Mapping[str, MetadataValue],
    max_matrix_elements: int,
) -> str:
    """Serialise the property list and camera metadata as text blocks."""
    lines = ["BEGIN: PROPERTY LIST"]
    lines.extend(
        f"  {key} = {format_metadata_value(value, max_matrix_elements)}"
        for key, value in properties.items()
    )
    lines.append("END: PROPERTY LIST")
    lines.append("BEGIN: CAMERA METADATA")
    lines.extend(
        f"  {key} = {format_metadata_value(value, max_matrix_elements)}"
        for key, value in camera_metadata.items()
    )
    lines.append("END: CAMERA METADATA")
    return "\n".join(lines) + "\n"


def histogram_rows(image: np.ndarray, log_scale: bool) -> list[list[str]]:
    """Count sample values per channel; only values that occur are listed."""
    samples = image.reshape(-1, image.shape[-1]) if image.ndim == 3 else image.reshape(-1, 1)
    counts = np.stack(
        [
            np.bincount(samples[:, channel].astype(np.int64), minlength=MAX_SAMPLE + 1)
            for channel in range(samples.shape[1])
        ],
        axis=1,
    )
    rows: list[list[str]] = []
    for value in np.flatnonzero(counts.sum(axis=1)):
        if log_scale:
            label = "-inf" if value == 0 else f"{math.log2(value / MAX_SAMPLE):.4f}"
        else:
            label = str(int(value))
        rows.append([label, *(str(int(count)) for count in counts[value])])
    return rows


def _rationals(values: list[float], signed: bool) -> list[int]:
    pairs: list[int] = []
    for item in values:
        numerator = int(round(item * RATIONAL_SCALE))
        if not signed:
            numerator = max(numerator, 0)
        pairs.extend((numerator, RATIONAL_SCALE))
    return pairs


class RawpyArtifactWriter:
    """Render decoded containers with LibRaw and write them to disk."""

    def write_preview(self, container: Container, destination: Path) -> None:
        target = as_rawpy_container(container)
        if target.preview is None:
            raise ProduceError("Embedded preview was not loaded.")
        destination.write_bytes(target.preview)

    def write_metadata(
        self,
        container: Container,
        destination: Path,
        max_matrix_elements: int,
    ) -> None:
        target = as_rawpy_container(container)
        if target.properties is None or target.camera_metadata is None:
            raise ProduceError("Property list and camera metadata were not loaded.")
        destination.write_text(
            format_metadata(target.properties, target.camera_metadata, max_matrix_elements),
            encoding="utf-8",
        )

    def write_raw_block(self, container: Container, destination: Path) -> None:
        target = as_rawpy_container(container)
        if target.sensor_block is None or target.decoded:
            raise ProduceError("Undecoded sensor block was not loaded.")
        destination.write_bytes(target.sensor_block.tobytes())

    def write_tiff(
        self,
        container: Container,
        destination: Path,
        processing: ProcessingOptions,
    ) -> None:
        import tifffile

        image = self._render(as_rawpy_container(container), processing)
        tifffile.imwrite(
            destination,
            image,
            photometric="rgb" if image.ndim == 3 else "minisblack",
        )

    def write_dng(
        self,
        container: Container,
        destination: Path,
        denoise: bool,
        white_balance: str | None,
    ) -> None:
        """Write a LinearRaw DNG holding white-balanced camera RGB."""
        import tifffile

        target = as_rawpy_container(container)
        processing = ProcessingOptions(
            color_encoding=ColorEncoding.NONE,
            denoise=denoise,
            white_balance=white_balance,
            legacy_offset=target.legacy_offset,
        )
        image = self._render(target, processing)

        xyz_to_camera = np.asarray(target.raw.rgb_xyz_matrix, dtype=np.float64)[:3, :3]
        if not np.any(xyz_to_camera):
            xyz_to_camera = np.eye(3)

        extratags = [
            (50706, "B", 4, (1, 4, 0, 0), True),  # DNGVersion
            (50707, "B", 4, (1, 1, 0, 0), True),  # DNGBackwardVersion
            (50708, "s", 0, DNG_CAMERA_MODEL, True),  # UniqueCameraModel
            (50714, "H", 1, 0, True),  # BlackLevel
            (50717, "H", 1, MAX_SAMPLE, True),  # WhiteLevel
            (50721, "2i", 9, _rationals(xyz_to_camera.ravel().tolist(), signed=True), True),
            (50728, "2I", 3, _rationals([1.0, 1.0, 1.0], signed=False), True),
            (50778, "H", 1, 21, True),  # CalibrationIlluminant1 = D65
        ]
        tifffile.imwrite(
            destination,
            image,
            photometric=tifffile.PHOTOMETRIC.LINEAR_RAW,
            planarconfig="contig",
            extratags=extratags,
        )

    def write_ppm(
        self,
        container: Container,
        destination: Path,
        processing: ProcessingOptions,
        binary: bool,
    ) -> None:
        image = self._render(as_rawpy_container(container), processing)
        if image.ndim == 2:
            image = np.stack([image] * 3, axis=-1)
        height, width = image.shape[:2]
        if binary:
            header = f"P6\n{width} {height}\n{MAX_SAMPLE}\n".encode("ascii")
            destination.write_bytes(header + image.astype(">u2").tobytes())
            return
        with destination.open("w", encoding="ascii") as handle:
            handle.write(f"P3\n{width} {height}\n{MAX_SAMPLE}\n")
            for row in image.reshape(height, -1):
                handle.write(" ".join(str(sample) for sample in row.tolist()) + "\n")

    def write_histogram(
        self,
        container: Container,
        destination: Path,
        processing: ProcessingOptions,
        log_scale: bool,
    ) -> None:
        image = self._render(as_rawpy_container(container), processing)
        channels = image.shape[-1] if image.ndim == 3 else 1
        header = ["exposure" if log_scale else "value"]
        header.extend(f"channel_{index}" for index in range(channels))
        with destination.open("w", encoding="ascii", newline="") as handle:
            out = csv.writer(handle)
            out.writerow(header)
            out.writerows(histogram_rows(image, log_scale))

    def _render(self, container: RawpyContainer, processing: ProcessingOptions) -> np.ndarray:
        """Return a uint16 image for ``processing`` from a loaded container.

        Rendered encodings always cover the visible area reported by LibRaw, so
        ``crop`` only affects the unprocessed sensor block, which otherwise
        keeps its margins.
        """
        encoding = processing.color_encoding
        if encoding is ColorEncoding.QUATTRO_TOP:
            raise ProduceError("Quattro top layer is not available from this container.")
        if container.sensor_block is None or not container.decoded:
            raise ProduceError("Decoded sensor block was not loaded.")
        if processing.use_accelerator:
            logger.debug("no accelerated rendering path available; using CPU")

        if encoding is ColorEncoding.UNPROCESSED:
            block = container.sensor_block
            if processing.crop:
                sizes = container.raw.sizes
                block = block[
                    sizes.top_margin : sizes.top_margin + sizes.height,
                    sizes.left_margin : sizes.left_margin + sizes.width,
                ]
            return block

        params = self._postprocess_params(container, processing)
        try:
            image = container.raw.postprocess(**params)
        except Exception as exc:
            raise ProduceError(f"Could not render image: {exc}") from exc
        return np.asarray(image, dtype=np.uint16)

    def _postprocess_params(
        self,
        container: RawpyContainer,
        processing: ProcessingOptions,
    ) -> dict[str, Any]:
        import rawpy

        encoding = processing.color_encoding
        params: dict[str, Any] = {
            "output_color": getattr(rawpy.ColorSpace, _COLOR_SPACE_NAMES[encoding]),
            "output_bps": 16,
            "no_auto_bright": True,
        }
        if encoding is ColorEncoding.NONE:
            params["gamma"] = (1, 1)
        params.update(self._white_balance_params(container, processing.white_balance))
        if processing.denoise:
            params["fbdd_noise_reduction"] = rawpy.FBDDNoiseReductionMode.Full
        if container.legacy_offset is not None:
            params["user_black"] = container.legacy_offset
        return params

    def _white_balance_params(
        self,
        container: RawpyContainer,
        preset: str | None,
    ) -> dict[str, Any]:
        if preset is None:
            return dict(_CAMERA_WB)
        key = preset.strip().lower()
        if key in {"camera", "asshot", "as-shot"}:
            return dict(_CAMERA_WB)
        if key == "auto":
            return dict(_AUTO_WB)
        if key in {"daylight", "sunlight"}:
            return {"user_wb": [float(v) for v in container.raw.daylight_whitebalance]}
        if key in {"none", "unity"}:
            return {"user_wb": [1.0, 1.0, 1.0, 1.0]}
        raise ProduceError(f"Unknown white balance preset: {preset}")
