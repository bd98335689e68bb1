"""Application ports for the collaborator library and output publishing."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Protocol

from x3f_extract.application.options import ProcessingOptions
from x3f_extract.paths import PathPair
from x3f_extract.types import Container, MetadataMap


class ContainerLoader(Protocol):
    """Parse an input stream and load typed sub-blocks from it."""

    def open_container(self, stream: BinaryIO) -> Container:
        """Parse the top-level structure of ``stream``."""

    def load_embedded_preview(self, container: Container) -> bytes:
        """Load the embedded JPEG preview."""

    def load_property_list(self, container: Container) -> MetadataMap:
        """Load the property list block."""

    def load_camera_metadata(self, container: Container) -> MetadataMap:
        """Load the camera metadata block."""

    def load_undecoded_sensor_block(self, container: Container) -> bytes:
        """Load the sensor block exactly as stored."""

    def load_decoded_sensor_block(
        self,
        container: Container,
        legacy_offset: int | None = None,
    ) -> object:
        """Load and fully decode the sensor block."""


class ArtifactWriter(Protocol):
    """Produce one artifact per output kind at a destination path."""

    def write_preview(self, container: Container, destination: Path) -> None:
        """Write the embedded preview verbatim."""

    def write_metadata(
        self,
        container: Container,
        destination: Path,
        max_matrix_elements: int,
    ) -> None:
        """Serialise the property list and camera metadata."""

    def write_raw_block(self, container: Container, destination: Path) -> None:
        """Write the undecoded sensor block verbatim."""

    def write_tiff(
        self,
        container: Container,
        destination: Path,
        processing: ProcessingOptions,
    ) -> None:
        """Write the decoded image as a 3x16 bit TIFF."""

    def write_dng(
        self,
        container: Container,
        destination: Path,
        denoise: bool,
        white_balance: str | None,
    ) -> None:
        """Write the decoded image as a LinearRaw DNG."""

    def write_ppm(
        self,
        container: Container,
        destination: Path,
        processing: ProcessingOptions,
        binary: bool,
    ) -> None:
        """Write the decoded image as 16 bit PPM (P6 if ``binary`` else P3)."""

    def write_histogram(
        self,
        container: Container,
        destination: Path,
        processing: ProcessingOptions,
        log_scale: bool,
    ) -> None:
        """Write a CSV histogram of the decoded image."""


class OutputCommitter(Protocol):
    """Publish a fully written temporary artifact at its final path."""

    def commit(self, paths: PathPair) -> Path:
        """Make ``paths.temporary`` visible as ``paths.final``."""
