"""Error hierarchy for the extraction driver."""

from __future__ import annotations

from x3f_extract.types import FailureStage


class X3FExtractError(Exception):
    """Base class for all driver errors."""

    exit_code = 1


class UsageError(X3FExtractError):
    """Invalid command-line usage; fatal before any file is touched."""


class FileError(X3FExtractError):
    """Error scoped to a single input file."""

    stage: FailureStage = FailureStage.PRODUCE_OUTPUT


class OpenError(FileError):
    """Input file could not be opened."""

    stage = FailureStage.OPEN_INPUT


class DecodeError(FileError):
    """Container data could not be parsed or loaded."""

    stage = FailureStage.DECODE


class PathError(FileError):
    """Derived output path exceeds its capacity."""

    stage = FailureStage.PRODUCE_OUTPUT


class ProduceError(FileError):
    """Requested artifact could not be generated."""

    stage = FailureStage.PRODUCE_OUTPUT


class CommitError(FileError):
    """Temporary artifact could not be published at its final path."""

    stage = FailureStage.COMMIT
