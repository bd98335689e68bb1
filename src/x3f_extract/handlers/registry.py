"""Handler registry keyed by output kind."""

from __future__ import annotations

from x3f_extract.errors import UsageError
from x3f_extract.handlers.base import OutputHandler
from x3f_extract.handlers.builtins import (
    DngHandler,
    HistogramHandler,
    JpegPreviewHandler,
    MetadataHandler,
    PpmHandler,
    RawBlockHandler,
    TiffHandler,
)
from x3f_extract.types import OutputKind


class HandlerRegistry:
    """Registry mapping each output kind to exactly one handler."""

    def __init__(self) -> None:
        self._handlers: dict[OutputKind, OutputHandler] = {}

    def register(self, handler: OutputHandler) -> None:
        """Register ``handler`` for its output kind.

        Parameters
        ----------
        handler : OutputHandler
            Handler instance to register. Replaces any handler already
            registered for the same kind.

        Raises
        ------
        UsageError
            If the handler does not declare a known kind and an extension.
        """
        kind = getattr(handler, "kind", None)
        if not isinstance(kind, OutputKind):
            raise UsageError("Handler must declare an OutputKind 'kind'.")
        if not getattr(handler, "extension", "").startswith("."):
            raise UsageError(f"Handler for '{kind}' must declare a dotted extension.")
        self._handlers[kind] = handler

    def names(self) -> list[str]:
        """Return registered kinds as sorted strings."""
        return sorted(str(kind) for kind in self._handlers)

    def get(self, kind: OutputKind) -> OutputHandler:
        """Get the handler registered for ``kind``.

        Raises
        ------
        UsageError
            If no handler is registered for ``kind``.
        """
        try:
            return self._handlers[kind]
        except KeyError as exc:
            raise UsageError(
                f"Unknown output kind '{kind}'. Available kinds: {', '.join(self.names())}"
            ) from exc


def create_default_registry() -> HandlerRegistry:
    """Create a registry holding one built-in handler per output kind."""
    registry = HandlerRegistry()
    for handler in (
        RawBlockHandler(),
        TiffHandler(),
        DngHandler(),
        PpmHandler(binary=False),
        PpmHandler(binary=True),
        HistogramHandler(log_scale=False),
        HistogramHandler(log_scale=True),
        JpegPreviewHandler(),
        MetadataHandler(),
    ):
        registry.register(handler)
    return registry
