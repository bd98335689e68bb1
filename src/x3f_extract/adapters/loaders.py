"""LibRaw-backed container loader implementing the ``ContainerLoader`` port."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, BinaryIO

import numpy as np

from x3f_extract.errors import DecodeError
from x3f_extract.types import Container, MetadataValue


@dataclass
class RawpyContainer:
    """Opened LibRaw handle plus the blocks loaded from it so far."""

    raw: Any
    preview: bytes | None = None
    properties: dict[str, MetadataValue] | None = None
    camera_metadata: dict[str, MetadataValue] | None = None
    sensor_block: np.ndarray | None = None
    decoded: bool = False
    legacy_offset: int | None = None

    def close(self) -> None:
        self.raw.close()
        self.sensor_block = None


def as_rawpy_container(container: Container) -> RawpyContainer:
    """Narrow a port-level container to the rawpy implementation."""
    if not isinstance(container, RawpyContainer):
        raise DecodeError(
            f"Unsupported container type {type(container).__name__}; "
            "expected RawpyContainer."
        )
    return container


def to_metadata_value(value: object) -> MetadataValue:
    """Convert numpy/LibRaw values into plain metadata values."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, bytes):
        return value.decode("ascii", errors="replace")
    if isinstance(value, (list, tuple)):
        return [to_metadata_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    name = getattr(value, "name", None)
    return name if isinstance(name, str) else str(value)


class RawpyContainerLoader:
    """Load container blocks through ``rawpy``."""

    def open_container(self, stream: BinaryIO) -> RawpyContainer:
        """Parse ``stream`` with LibRaw.

        Raises
        ------
        DecodeError
            If LibRaw cannot identify or unpack the container.
        """
        import rawpy

        try:
            raw = rawpy.imread(stream)
        except rawpy.LibRawError as exc:
            raise DecodeError(f"Could not read container: {exc}") from exc
        return RawpyContainer(raw=raw)

    def load_embedded_preview(self, container: Container) -> bytes:
        """Load the embedded JPEG preview."""
        import rawpy

        target = as_rawpy_container(container)
        try:
            thumb = target.raw.extract_thumb()
        except rawpy.LibRawError as exc:
            raise DecodeError(f"Could not load embedded preview: {exc}") from exc
        if thumb.format != rawpy.ThumbFormat.JPEG:
            raise DecodeError("Embedded preview is not a JPEG image.")
        target.preview = bytes(thumb.data)
        return target.preview

    def load_property_list(self, container: Container) -> dict[str, MetadataValue]:
        """Load image geometry and colour description."""
        target = as_rawpy_container(container)
        raw = target.raw
        properties: dict[str, MetadataValue] = {
            "color_desc": to_metadata_value(raw.color_desc),
            "num_colors": to_metadata_value(raw.num_colors),
            "raw_type": to_metadata_value(raw.raw_type),
        }
        for key, value in raw.sizes._asdict().items():
            properties[key] = to_metadata_value(value)
        target.properties = properties
        return properties

    def load_camera_metadata(self, container: Container) -> dict[str, MetadataValue]:
        """Load black/white levels, white balance and colour matrices."""
        target = as_rawpy_container(container)
        raw = target.raw
        metadata: dict[str, MetadataValue] = {
            "black_level_per_channel": to_metadata_value(raw.black_level_per_channel),
            "white_level": to_metadata_value(raw.white_level),
            "camera_whitebalance": to_metadata_value(raw.camera_whitebalance),
            "daylight_whitebalance": to_metadata_value(raw.daylight_whitebalance),
            "color_matrix": to_metadata_value(raw.color_matrix),
            "rgb_xyz_matrix": to_metadata_value(raw.rgb_xyz_matrix),
            "raw_pattern": to_metadata_value(raw.raw_pattern),
            "tone_curve": to_metadata_value(raw.tone_curve),
        }
        target.camera_metadata = metadata
        return metadata

    def load_undecoded_sensor_block(self, container: Container) -> bytes:
        """Load the sensor mosaic exactly as LibRaw unpacked it."""
        target = as_rawpy_container(container)
        block = np.array(target.raw.raw_image, copy=True)
        target.sensor_block = block
        target.decoded = False
        return block.tobytes()

    def load_decoded_sensor_block(
        self,
        container: Container,
        legacy_offset: int | None = None,
    ) -> np.ndarray:
        """Load the sensor mosaic with the black level removed.

        ``legacy_offset`` replaces the per-channel black level reported by the
        container when it is given.
        """
        target = as_rawpy_container(container)
        raw = target.raw
        mosaic = np.asarray(raw.raw_image, dtype=np.int32)
        if legacy_offset is None:
            black = np.asarray(raw.black_level_per_channel, dtype=np.int32)[raw.raw_colors]
        else:
            black = np.int32(legacy_offset)
        block = np.clip(mosaic - black, 0, np.iinfo(np.uint16).max).astype(np.uint16)
        target.sensor_block = block
        target.decoded = True
        target.legacy_offset = legacy_offset
        return block
