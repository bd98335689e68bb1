"""Handler protocol: one implementation per output kind."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from x3f_extract.application.options import ExecutionConfig
from x3f_extract.application.ports import ArtifactWriter, ContainerLoader
from x3f_extract.types import Container, OutputKind


@runtime_checkable
class OutputHandler(Protocol):
    """Protocol implemented by output handlers."""

    kind: OutputKind
    extension: str
    label: str
    consumes_pixels: bool

    def load(
        self,
        loader: ContainerLoader,
        container: Container,
        config: ExecutionConfig,
    ) -> None:
        """Load the container blocks this output needs.

        Parameters
        ----------
        loader : ContainerLoader
            Collaborator used to load blocks into ``container``.
        container : Container
            Opened input container.
        config : ExecutionConfig
            Batch execution plan.
        """

    def produce(
        self,
        writer: ArtifactWriter,
        container: Container,
        destination: Path,
        config: ExecutionConfig,
    ) -> None:
        """Write the artifact to ``destination``.

        Parameters
        ----------
        writer : ArtifactWriter
            Collaborator performing the byte-level output.
        container : Container
            Container with the required blocks loaded.
        destination : Path
            Temporary path receiving the artifact.
        config : ExecutionConfig
            Batch execution plan.
        """
