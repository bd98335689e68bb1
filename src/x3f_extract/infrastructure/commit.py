"""Atomic publish of temporary artifacts."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from x3f_extract.errors import CommitError
from x3f_extract.paths import PathPair

logger = logging.getLogger(__name__)


def _fsync_file(path: Path) -> None:
    fd = os.open(path, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


class AtomicCommitter:
    """Default committer using rename-over-existing.

    ``os.replace`` swaps the directory entry in one step, so a reader of the
    final path sees either the previous complete file or the new one. The
    guarantee holds only when both paths live on the same filesystem, which
    is always the case for a ``PathPair`` since the temporary is a sibling of
    the final path.
    """

    def __init__(self, sync: bool = True) -> None:
        self.sync = sync

    def commit(self, paths: PathPair) -> Path:
        """Publish ``paths.temporary`` as ``paths.final``.

        Parameters
        ----------
        paths : PathPair
            Temporary artifact and its destination.

        Returns
        -------
        Path
            The final path.

        Raises
        ------
        CommitError
            If the artifact cannot be flushed or renamed. The temporary file
            is left on disk.
        """
        try:
            if self.sync:
                _fsync_file(paths.temporary)
            os.replace(paths.temporary, paths.final)
        except OSError as exc:
            raise CommitError(
                f"Couldn't rename {paths.temporary} to {paths.final}: {exc}"
            ) from exc
        logger.debug("committed %s", paths.final)
        return paths.final
