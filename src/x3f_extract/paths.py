"""Bounded construction of temporary and final output paths.

Output paths are assembled step by step and every step is checked against a
fixed capacity before it is performed. A path that does not fit is rejected
as a whole; it is never truncated.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from x3f_extract.errors import PathError

MAX_PATH = 1000
MAX_EXTENSION = 10
MAX_OUTPUT_PATH = MAX_PATH + MAX_EXTENSION
MAX_TEMP_PATH = MAX_OUTPUT_PATH + MAX_EXTENSION
TEMP_SUFFIX = ".tmp"


@dataclass(frozen=True)
class PathPair:
    """Temporary and final output path for one input file."""

    temporary: Path
    final: Path


def _bounded_copy(src: str, capacity: int) -> str:
    if len(src) > capacity:
        raise PathError(f"path too large: {len(src)} characters exceed {capacity}")
    return src


def _bounded_concat(dst: str, src: str, capacity: int) -> str:
    if len(dst) + len(src) > capacity:
        raise PathError(
            f"path too large: {len(dst) + len(src)} characters exceed {capacity}"
        )
    return dst + src


def last_segment(path: str) -> str:
    """Return the part of ``path`` after its last ``/`` or ``os.sep``."""
    cut = max(path.rfind("/"), path.rfind(os.sep))
    return path[cut + 1 :]


def build_output_paths(
    input_path: str | Path,
    output_dir: str | Path | None,
    extension: str,
) -> PathPair:
    """Derive the output path pair for one input file.

    Parameters
    ----------
    input_path : str | Path
        Path of the input file as given on the command line.
    output_dir : str | Path | None
        Directory receiving the outputs. ``None`` writes next to the input.
    extension : str
        Extension appended to the base name, including the leading dot.

    Returns
    -------
    PathPair
        ``final`` is base + extension; ``temporary`` is final + ``TEMP_SUFFIX``.

    Raises
    ------
    PathError
        If any concatenation step would exceed its capacity.
    """
    inpath = os.fspath(input_path)
    _bounded_copy(extension, MAX_EXTENSION)

    if output_dir is None:
        base = _bounded_copy(inpath, MAX_PATH)
    else:
        base = _bounded_copy(os.fspath(output_dir), MAX_PATH)
        base = _bounded_concat(base, os.sep, MAX_PATH)
        base = _bounded_concat(base, last_segment(inpath), MAX_PATH)

    final = _bounded_copy(base, MAX_OUTPUT_PATH)
    final = _bounded_concat(final, extension, MAX_OUTPUT_PATH)
    temporary = _bounded_copy(final, MAX_TEMP_PATH)
    temporary = _bounded_concat(temporary, TEMP_SUFFIX, MAX_TEMP_PATH)

    return PathPair(temporary=Path(temporary), final=Path(final))
