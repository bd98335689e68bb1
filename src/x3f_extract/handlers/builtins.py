"""Built-in output handlers."""

from __future__ import annotations

from pathlib import Path

from x3f_extract.application.options import ExecutionConfig
from x3f_extract.application.ports import ArtifactWriter, ContainerLoader
from x3f_extract.types import Container, OutputKind


class JpegPreviewHandler:
    """Dump the embedded JPEG preview."""

    kind = OutputKind.JPEG_EXTRACT
    extension = ".jpg"
    label = "JPEG"
    consumes_pixels = False

    def load(
        self,
        loader: ContainerLoader,
        container: Container,
        config: ExecutionConfig,
    ) -> None:
        del config
        loader.load_embedded_preview(container)

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        del config
        writer.write_preview(container, destination)


class _MetadataBlocksHandler:
    """Shared loading of the property list and camera metadata."""

    def load(
        self,
        loader: ContainerLoader,
        container: Container,
        config: ExecutionConfig,
    ) -> None:
        del config
        loader.load_property_list(container)
        loader.load_camera_metadata(container)


class MetadataHandler(_MetadataBlocksHandler):
    """Dump the property list and camera metadata as text."""

    kind = OutputKind.META_EXTRACT
    extension = ".meta"
    label = "META DATA"
    consumes_pixels = False

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        writer.write_metadata(container, destination, config.max_matrix_elements)


class RawBlockHandler(_MetadataBlocksHandler):
    """Dump the sensor block undecoded."""

    kind = OutputKind.RAW_BLOCK
    extension = ".raw"
    label = "RAW block"
    consumes_pixels = False

    def load(
        self,
        loader: ContainerLoader,
        container: Container,
        config: ExecutionConfig,
    ) -> None:
        super().load(loader, container, config)
        loader.load_undecoded_sensor_block(container)

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        del config
        writer.write_raw_block(container, destination)


class _DecodedImageHandler(_MetadataBlocksHandler):
    """Base for outputs rendered from the fully decoded sensor block."""

    consumes_pixels = True

    def load(
        self,
        loader: ContainerLoader,
        container: Container,
        config: ExecutionConfig,
    ) -> None:
        super().load(loader, container, config)
        loader.load_decoded_sensor_block(
            container, legacy_offset=config.processing.legacy_offset
        )


class TiffHandler(_DecodedImageHandler):
    """Dump the decoded image as 3x16 bit TIFF."""

    kind = OutputKind.TIFF
    extension = ".tif"
    label = "RAW as TIFF"

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        writer.write_tiff(container, destination, config.processing)


class DngHandler(_DecodedImageHandler):
    """Dump the decoded image as LinearRaw DNG.

    DNG output keeps camera colour and the full sensor area, so only the
    denoise flag and the white balance preset are forwarded.
    """

    kind = OutputKind.DNG
    extension = ".dng"
    label = "RAW as DNG"

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        writer.write_dng(
            container,
            destination,
            denoise=config.processing.denoise,
            white_balance=config.processing.white_balance,
        )


class PpmHandler(_DecodedImageHandler):
    """Dump the decoded image as 16 bit PPM."""

    extension = ".ppm"
    label = "RAW as PPM"

    def __init__(self, binary: bool) -> None:
        self.binary = binary
        self.kind = OutputKind.PPM_BINARY if binary else OutputKind.PPM_ASCII

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        writer.write_ppm(container, destination, config.processing, binary=self.binary)


class HistogramHandler(_DecodedImageHandler):
    """Dump a per-channel histogram of the decoded image as CSV."""

    extension = ".csv"
    label = "RAW as CSV histogram"

    def __init__(self, log_scale: bool) -> None:
        self.log_scale = log_scale
        self.kind = (
            OutputKind.HISTOGRAM_LOG if log_scale else OutputKind.HISTOGRAM_LINEAR
        )

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        writer.write_histogram(
            container, destination, config.processing, log_scale=self.log_scale
        )
