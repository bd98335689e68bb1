"""Application use-cases orchestrating per-file conversion and batches."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from contextlib import ExitStack
from pathlib import Path

from pydantic import ValidationError

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
from x3f_extract.errors import (
    CommitError,
    DecodeError,
    FileError,
    OpenError,
    ProduceError,
    UsageError,
)
from x3f_extract.handlers.registry import HandlerRegistry, create_default_registry
from x3f_extract.infrastructure.commit import AtomicCommitter
from x3f_extract.paths import build_output_paths
from x3f_extract.schemas import ExecutionConfigSchema
from x3f_extract.types import ColorEncoding, OutputKind

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[ConversionOutcome], None]


def build_execution_config(
    *,
    output_kind: OutputKind | str = OutputKind.DNG,
    output_dir: Path | str | None = None,
    color_encoding: ColorEncoding | str = ColorEncoding.NONE,
    crop: bool = False,
    denoise: bool = False,
    white_balance: str | None = None,
    use_accelerator: bool = False,
    legacy_offset: int | str | None = None,
    max_matrix_elements: int | str = 100,
) -> ExecutionConfig:
    """Build a validated execution plan from command/API params.

    Raises
    ------
    UsageError
        If any value fails validation.
    """
    try:
        schema = ExecutionConfigSchema(
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
    except ValidationError as exc:
        raise UsageError(f"Invalid extraction parameters: {exc}") from exc

    return ExecutionConfig(
        output_kind=schema.output_kind,
        output_dir=schema.output_dir,
        processing=ProcessingOptions(
            color_encoding=schema.color_encoding,
            crop=schema.crop,
            denoise=schema.denoise,
            white_balance=schema.white_balance,
            use_accelerator=schema.use_accelerator,
            legacy_offset=schema.legacy_offset,
        ),
        max_matrix_elements=schema.max_matrix_elements,
    )


def _release(close: Callable[[], None], input_path: Path) -> Callable[..., bool]:
    """Build an exit callback that closes a per-file resource.

    A close failure fails the file at the decode stage. When the file is
    already failing, the original error is kept and the close failure is
    only logged.
    """

    def _exit(exc_type: object, exc: BaseException | None, tb: object) -> bool:
        del exc_type, tb
        try:
            close()
        except Exception as close_exc:
            if exc is None:
                raise DecodeError(
                    f"Could not release {input_path}: {close_exc}"
                ) from close_exc
            logger.warning("Could not release %s: %s", input_path, close_exc)
        return False

    return _exit


def _default_collaborators() -> tuple[ContainerLoader, ArtifactWriter]:
    from x3f_extract.adapters.loaders import RawpyContainerLoader
    from x3f_extract.adapters.writers import RawpyArtifactWriter

    return RawpyContainerLoader(), RawpyArtifactWriter()


def convert_file(
    input_path: Path,
    config: ExecutionConfig,
    *,
    loader: ContainerLoader | None = None,
    writer: ArtifactWriter | None = None,
    committer: OutputCommitter | None = None,
    registry: HandlerRegistry | None = None,
) -> ConversionOutcome:
    """Use-case: convert one input file into one committed artifact.

    The artifact is written only to the temporary path of its ``PathPair``;
    the final path changes only through the committer.
    """
    if loader is None or writer is None:
        default_loader, default_writer = _default_collaborators()
        loader = loader or default_loader
        writer = writer or default_writer
    committer = committer or AtomicCommitter()
    registry = registry or create_default_registry()
    handler = registry.get(config.output_kind)

    try:
        with ExitStack() as stack:
            try:
                stream = open(input_path, "rb")
            except (OSError, ValueError) as exc:
                raise OpenError(f"Could not open infile {input_path}: {exc}") from exc
            stack.push(_release(stream.close, input_path))

            logger.info("READ THE X3F FILE %s", input_path)
            try:
                container = loader.open_container(stream)
            except FileError:
                raise
            except Exception as exc:
                raise DecodeError(f"Could not read infile {input_path}: {exc}") from exc
            stack.push(_release(container.close, input_path))

            try:
                handler.load(loader, container, config)
            except FileError:
                raise
            except Exception as exc:
                raise DecodeError(f"Could not load data from {input_path}: {exc}") from exc

            paths = build_output_paths(input_path, config.output_dir, handler.extension)

            logger.info("Dump %s to %s", handler.label, paths.final)
            try:
                handler.produce(writer, container, paths.temporary, config)
            except FileError:
                raise
            except Exception as exc:
                raise ProduceError(
                    f"Could not dump {handler.label} to {paths.temporary}: {exc}"
                ) from exc

        try:
            output_path = committer.commit(paths)
        except FileError:
            raise
        except Exception as exc:
            raise CommitError(
                f"Couldn't rename {paths.temporary} to {paths.final}: {exc}"
            ) from exc
    except FileError as exc:
        return ConversionFailure(input_path=input_path, stage=exc.stage, message=str(exc))

    return ConversionSuccess(input_path=input_path, output_path=output_path)


def run_batch(
    input_paths: Iterable[Path | str],
    config: ExecutionConfig,
    *,
    loader: ContainerLoader | None = None,
    writer: ArtifactWriter | None = None,
    committer: OutputCommitter | None = None,
    registry: HandlerRegistry | None = None,
    on_outcome: OutcomeCallback | None = None,
) -> BatchResult:
    """Use-case: convert every input in order, isolating per-file failures."""
    if loader is None or writer is None:
        default_loader, default_writer = _default_collaborators()
        loader = loader or default_loader
        writer = writer or default_writer
    committer = committer or AtomicCommitter()
    registry = registry or create_default_registry()

    result = BatchResult()
    for raw_path in input_paths:
        input_path = Path(raw_path)
        outcome = convert_file(
            input_path,
            config,
            loader=loader,
            writer=writer,
            committer=committer,
            registry=registry,
        )
        if isinstance(outcome, ConversionFailure):
            logger.error("%s failed at %s: %s", input_path, outcome.stage, outcome.message)
        result.record(outcome)
        if on_outcome is not None:
            on_outcome(outcome)
    return result
