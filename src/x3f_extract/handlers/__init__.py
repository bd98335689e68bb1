"""Output handlers and the registry selecting one per output kind."""

from .base import OutputHandler
from .registry import HandlerRegistry, create_default_registry

__all__ = ["OutputHandler", "HandlerRegistry", "create_default_registry"]
