"""Unit tests for application use-case contracts."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

import pytest

from x3f_extract.application import run_batch as lazy_run_batch
from x3f_extract.application.options import ExecutionConfig, ProcessingOptions
from x3f_extract.application.results import ConversionFailure, ConversionSuccess
from x3f_extract.application.use_cases import (
    build_execution_config,
    convert_file,
    run_batch,
)
from x3f_extract.errors import DecodeError, UsageError
from x3f_extract.handlers import HandlerRegistry
from x3f_extract.handlers.builtins import JpegPreviewHandler
from x3f_extract.paths import PathPair
from x3f_extract.types import ColorEncoding, FailureStage, OutputKind


class _Container:
    def __init__(self, payload: bytes) -> None:
        self.payload = payload
        self.closed = False
        self.loaded: list[str] = []

    def close(self) -> None:
        self.closed = True
        if b"NOCLOSE" in self.payload:
            raise RuntimeError("close failed")


class _Loader:
    """Container loader test double driven by the file payload."""

    def __init__(self) -> None:
        self.containers: list[_Container] = []
        self.offsets: list[int | None] = []

    def open_container(self, stream: BinaryIO) -> _Container:
        payload = stream.read()
        if payload.startswith(b"BAD"):
            raise ValueError("not a container")
        container = _Container(payload)
        self.containers.append(container)
        return container

    def load_embedded_preview(self, container: _Container) -> bytes:
        if container.payload.startswith(b"NOPREVIEW"):
            raise DecodeError("no JPEG preview")
        container.loaded.append("preview")
        return b"\xff\xd8jpeg"

    def load_property_list(self, container: _Container) -> dict[str, object]:
        container.loaded.append("properties")
        return {"width": 4}

    def load_camera_metadata(self, container: _Container) -> dict[str, object]:
        container.loaded.append("camf")
        return {"white_level": 4095}

    def load_undecoded_sensor_block(self, container: _Container) -> bytes:
        container.loaded.append("undecoded")
        return container.payload

    def load_decoded_sensor_block(
        self, container: _Container, legacy_offset: int | None = None
    ) -> bytes:
        container.loaded.append("decoded")
        self.offsets.append(legacy_offset)
        return container.payload


class _Writer:
    """Artifact writer test double recording each call."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.fail_with = fail_with
        self.calls: list[tuple[str, Path, object]] = []

    def _write(self, name: str, destination: Path, detail: object = None) -> None:
        self.calls.append((name, destination, detail))
        if self.fail_with is not None:
            raise self.fail_with
        destination.write_text(name)

    def write_preview(self, container: _Container, destination: Path) -> None:
        self._write("preview", destination)

    def write_metadata(
        self, container: _Container, destination: Path, max_matrix_elements: int
    ) -> None:
        self._write("metadata", destination, max_matrix_elements)

    def write_raw_block(self, container: _Container, destination: Path) -> None:
        self._write("raw", destination)

    def write_tiff(
        self, container: _Container, destination: Path, processing: ProcessingOptions
    ) -> None:
        self._write("tiff", destination, processing)

    def write_dng(
        self,
        container: _Container,
        destination: Path,
        denoise: bool,
        white_balance: str | None,
    ) -> None:
        self._write("dng", destination, (denoise, white_balance))

    def write_ppm(
        self,
        container: _Container,
        destination: Path,
        processing: ProcessingOptions,
        binary: bool,
    ) -> None:
        self._write("ppm", destination, binary)

    def write_histogram(
        self,
        container: _Container,
        destination: Path,
        processing: ProcessingOptions,
        log_scale: bool,
    ) -> None:
        self._write("histogram", destination, log_scale)


class _FailingCommitter:
    def __init__(self) -> None:
        self.calls: list[PathPair] = []

    def commit(self, paths: PathPair) -> Path:
        self.calls.append(paths)
        raise OSError("disk full")


def _input(tmp_path: Path, name: str, payload: bytes = b"X3F") -> Path:
    path = tmp_path / name
    path.write_bytes(payload)
    return path


def test_build_execution_config_wraps_validation_errors() -> None:
    """Surface pydantic validation failures as usage errors."""
    with pytest.raises(UsageError, match="Invalid extraction parameters"):
        build_execution_config(output_kind="gif")


def test_build_execution_config_groups_processing_options() -> None:
    """Group pixel options under ProcessingOptions."""
    config = build_execution_config(
        output_kind="tiff", color_encoding="sRGB", crop=True, legacy_offset=3
    )
    assert config.output_kind is OutputKind.TIFF
    assert config.processing.color_encoding is ColorEncoding.SRGB
    assert config.processing.crop
    assert config.processing.legacy_offset == 3


def test_convert_file_success_commits_final(tmp_path: Path) -> None:
    """Write the temporary artifact then publish it at the final path."""
    source = _input(tmp_path, "a.x3f")
    loader = _Loader()
    writer = _Writer()

    outcome = convert_file(
        source, ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT), loader=loader, writer=writer
    )

    assert isinstance(outcome, ConversionSuccess)
    assert outcome.ok
    assert outcome.output_path == tmp_path / "a.x3f.jpg"
    assert outcome.output_path.read_text() == "preview"
    assert not (tmp_path / "a.x3f.jpg.tmp").exists()
    assert writer.calls[0][1] == tmp_path / "a.x3f.jpg.tmp"
    assert loader.containers[0].closed


def test_convert_file_writes_into_output_dir(tmp_path: Path) -> None:
    """Place outputs in the output directory under the input's last segment."""
    source = _input(tmp_path, "a.x3f")
    out = tmp_path / "out"
    out.mkdir()

    writer = _Writer()
    outcome = convert_file(
        source,
        ExecutionConfig(output_kind=OutputKind.META_EXTRACT, output_dir=out, max_matrix_elements=5),
        loader=_Loader(),
        writer=writer,
    )

    assert isinstance(outcome, ConversionSuccess)
    assert outcome.output_path == out / "a.x3f.meta"
    assert writer.calls == [("metadata", out / "a.x3f.meta.tmp", 5)]


@pytest.mark.parametrize(
    ("kind", "expected_loads"),
    [
        (OutputKind.JPEG_EXTRACT, ["preview"]),
        (OutputKind.META_EXTRACT, ["properties", "camf"]),
        (OutputKind.RAW_BLOCK, ["properties", "camf", "undecoded"]),
        (OutputKind.TIFF, ["properties", "camf", "decoded"]),
        (OutputKind.HISTOGRAM_LOG, ["properties", "camf", "decoded"]),
    ],
)
def test_handlers_load_required_blocks(
    tmp_path: Path, kind: OutputKind, expected_loads: list[str]
) -> None:
    """Load only the blocks the selected output needs."""
    loader = _Loader()
    convert_file(_input(tmp_path, "a.x3f"), ExecutionConfig(output_kind=kind), loader=loader, writer=_Writer())
    assert loader.containers[0].loaded == expected_loads


def test_legacy_offset_is_forwarded_to_decoder(tmp_path: Path) -> None:
    """Pass an explicit legacy offset to the decode step."""
    loader = _Loader()
    config = ExecutionConfig(
        output_kind=OutputKind.PPM_BINARY, processing=ProcessingOptions(legacy_offset=16)
    )
    convert_file(_input(tmp_path, "a.x3f"), config, loader=loader, writer=_Writer())
    assert loader.offsets == [16]


def test_dng_receives_only_denoise_and_white_balance(tmp_path: Path) -> None:
    """Forward denoise and white balance to DNG output."""
    writer = _Writer()
    config = ExecutionConfig(
        processing=ProcessingOptions(
            color_encoding=ColorEncoding.SRGB, crop=True, denoise=True, white_balance="auto"
        )
    )
    convert_file(_input(tmp_path, "a.x3f"), config, loader=_Loader(), writer=writer)
    assert writer.calls[0][0] == "dng"
    assert writer.calls[0][2] == (True, "auto")


def test_missing_input_fails_at_open(tmp_path: Path) -> None:
    """Report open-input failures without touching the loader."""
    loader = _Loader()
    outcome = convert_file(tmp_path / "missing.x3f", ExecutionConfig(), loader=loader, writer=_Writer())
    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.OPEN_INPUT
    assert "Could not open infile" in outcome.message
    assert loader.containers == []


def test_unparseable_input_fails_at_decode(tmp_path: Path) -> None:
    """Map loader exceptions to the decode stage."""
    outcome = convert_file(
        _input(tmp_path, "bad.x3f", b"BAD"), ExecutionConfig(), loader=_Loader(), writer=_Writer()
    )
    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.DECODE
    assert "not a container" in outcome.message


def test_missing_block_fails_at_decode_and_closes(tmp_path: Path) -> None:
    """Release the container when a block cannot be loaded."""
    loader = _Loader()
    writer = _Writer()
    outcome = convert_file(
        _input(tmp_path, "a.x3f", b"NOPREVIEW"),
        ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT),
        loader=loader,
        writer=writer,
    )
    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.DECODE
    assert loader.containers[0].closed
    assert writer.calls == []
    assert not (tmp_path / "a.x3f.jpg").exists()


def test_writer_failure_fails_at_produce(tmp_path: Path) -> None:
    """Map writer exceptions to the produce-output stage."""
    outcome = convert_file(
        _input(tmp_path, "a.x3f"),
        ExecutionConfig(output_kind=OutputKind.TIFF),
        loader=_Loader(),
        writer=_Writer(fail_with=RuntimeError("boom")),
    )
    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.PRODUCE_OUTPUT
    assert "Could not dump" in outcome.message
    assert not (tmp_path / "a.x3f.tif").exists()


def test_path_overflow_fails_at_produce(tmp_path: Path) -> None:
    """Report an oversized derived path before anything is written."""
    source = _input(tmp_path, "a.x3f")
    nested = tmp_path
    for _ in range(6):
        nested = nested / ("d" * 200)
    config = ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT, output_dir=nested)
    writer = _Writer()

    outcome = convert_file(source, config, loader=_Loader(), writer=writer)

    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.PRODUCE_OUTPUT
    assert "path too large" in outcome.message
    assert writer.calls == []


def test_commit_failure_fails_at_commit(tmp_path: Path) -> None:
    """Map committer exceptions to the commit stage."""
    committer = _FailingCommitter()
    outcome = convert_file(
        _input(tmp_path, "a.x3f"),
        ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT),
        loader=_Loader(),
        writer=_Writer(),
        committer=committer,
    )
    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.COMMIT
    assert (tmp_path / "a.x3f.jpg.tmp").exists()
    assert len(committer.calls) == 1


def test_run_batch_continues_after_failures(tmp_path: Path) -> None:
    """Process every file in order and count failures."""
    good = _input(tmp_path, "a.x3f")
    bad = _input(tmp_path, "b.x3f", b"BAD")
    missing = tmp_path / "c.x3f"
    seen: list[Path] = []

    result = run_batch(
        [good, bad, str(missing)],
        ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT),
        loader=_Loader(),
        writer=_Writer(),
        on_outcome=lambda outcome: seen.append(outcome.input_path),
    )

    assert result.files_seen == 3
    assert result.errors == 2
    assert result.exit_code == 1
    assert result.summary() == "Files processed: 3\terrors: 2"
    assert seen == [good, bad, missing]
    assert (tmp_path / "a.x3f.jpg").exists()


def test_run_batch_all_success_exit_zero(tmp_path: Path) -> None:
    """Return exit code 0 when every file converts."""
    result = run_batch(
        [_input(tmp_path, "a.x3f"), _input(tmp_path, "b.x3f")],
        ExecutionConfig(output_kind=OutputKind.RAW_BLOCK),
        loader=_Loader(),
        writer=_Writer(),
    )
    assert (result.files_seen, result.errors, result.exit_code) == (2, 0, 0)


def test_run_batch_with_output_dir_and_unreadable_file(tmp_path: Path) -> None:
    """Write the good file to the outdir and report the unreadable one."""
    out = tmp_path / "out"
    out.mkdir()
    good = _input(tmp_path, "a.x3f")
    config = build_execution_config(output_kind=OutputKind.DNG, output_dir=out)

    result = run_batch(
        [good, tmp_path / "unreadable.x3f"], config, loader=_Loader(), writer=_Writer()
    )

    assert result.summary() == "Files processed: 2\terrors: 1"
    assert (out / "a.x3f.dng").read_text() == "dng"
    assert sorted(p.name for p in out.iterdir()) == ["a.x3f.dng"]


def test_writer_failure_keeps_previous_artifact(tmp_path: Path) -> None:
    """Leave an existing final artifact untouched when produce fails."""
    final = tmp_path / "a.x3f.tif"
    final.write_bytes(b"previous tiff")

    outcome = convert_file(
        _input(tmp_path, "a.x3f"),
        ExecutionConfig(output_kind=OutputKind.TIFF),
        loader=_Loader(),
        writer=_Writer(fail_with=RuntimeError("boom")),
    )

    assert isinstance(outcome, ConversionFailure)
    assert final.read_bytes() == b"previous tiff"


def test_commit_failure_keeps_previous_artifact(tmp_path: Path) -> None:
    """Leave an existing final artifact untouched when commit fails."""
    final = tmp_path / "a.x3f.tif"
    final.write_bytes(b"previous tiff")

    outcome = convert_file(
        _input(tmp_path, "a.x3f"),
        ExecutionConfig(output_kind=OutputKind.TIFF),
        loader=_Loader(),
        writer=_Writer(),
        committer=_FailingCommitter(),
    )

    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.COMMIT
    assert final.read_bytes() == b"previous tiff"
    assert (tmp_path / "a.x3f.tif.tmp").read_text() == "tiff"


def test_close_failure_does_not_abort_batch(tmp_path: Path) -> None:
    """Fail only the file whose container cannot be released."""
    first = _input(tmp_path, "a.x3f", b"NOCLOSE")
    second = _input(tmp_path, "b.x3f")
    outcomes: list[object] = []

    result = run_batch(
        [first, second],
        ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT),
        loader=_Loader(),
        writer=_Writer(),
        on_outcome=outcomes.append,
    )

    assert (result.files_seen, result.errors) == (2, 1)
    failure = outcomes[0]
    assert isinstance(failure, ConversionFailure)
    assert failure.stage is FailureStage.DECODE
    assert "close failed" in failure.message
    assert not (tmp_path / "a.x3f.jpg").exists()
    assert (tmp_path / "b.x3f.jpg").read_text() == "preview"


def test_close_failure_keeps_original_error(tmp_path: Path) -> None:
    """Report the load failure rather than the later close failure."""
    loader = _Loader()
    outcome = convert_file(
        _input(tmp_path, "a.x3f", b"NOPREVIEW NOCLOSE"),
        ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT),
        loader=loader,
        writer=_Writer(),
    )

    assert isinstance(outcome, ConversionFailure)
    assert outcome.stage is FailureStage.DECODE
    assert "no JPEG preview" in outcome.message
    assert loader.containers[0].closed


def test_nul_byte_path_fails_at_open(tmp_path: Path) -> None:
    """Treat an unopenable path as a file-scoped open failure."""
    result = run_batch(
        [tmp_path / "a\x00.x3f", _input(tmp_path, "b.x3f")],
        ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT),
        loader=_Loader(),
        writer=_Writer(),
    )

    assert (result.files_seen, result.errors) == (2, 1)
    assert (tmp_path / "b.x3f.jpg").exists()


def test_package_wrapper_forwards_registry(tmp_path: Path) -> None:
    """Use the caller's registry through the lazy application wrapper."""

    class _TaggedPreview(JpegPreviewHandler):
        extension = ".thumb"

    registry = HandlerRegistry()
    registry.register(_TaggedPreview())

    result = lazy_run_batch(
        [_input(tmp_path, "a.x3f")],
        ExecutionConfig(output_kind=OutputKind.JPEG_EXTRACT),
        loader=_Loader(),
        writer=_Writer(),
        registry=registry,
    )

    assert result.errors == 0
    assert (tmp_path / "a.x3f.thumb").read_text() == "preview"
