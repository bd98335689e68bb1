"""Application-layer result objects."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from x3f_extract.types import FailureStage


@dataclass(frozen=True)
class ConversionSuccess:
    """Artifact written and committed at ``output_path``."""

    input_path: Path
    output_path: Path

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ConversionFailure:
    """Conversion stopped at ``stage`` with a diagnostic message."""

    input_path: Path
    stage: FailureStage
    message: str

    @property
    def ok(self) -> bool:
        return False


type ConversionOutcome = ConversionSuccess | ConversionFailure


@dataclass
class BatchResult:
    """Counters accumulated across one batch run."""

    files_seen: int = 0
    errors: int = 0

    def record(self, outcome: ConversionOutcome) -> None:
        """Count one processed file."""
        self.files_seen += 1
        if not outcome.ok:
            self.errors += 1

    @property
    def exit_code(self) -> int:
        return 1 if self.errors > 0 else 0

    def summary(self) -> str:
        return f"Files processed: {self.files_seen}\terrors: {self.errors}"
