"""Infrastructure implementations of application ports."""

from .commit import AtomicCommitter

__all__ = ["AtomicCommitter"]
