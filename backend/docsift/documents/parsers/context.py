"""Parse context: settings plus capabilities handed to every parser."""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

from docsift.config import ExtractionSettings, get_settings
from docsift.core.exceptions import NestingDepthError

T = TypeVar("T")


class ParseContext:
    """Bag of capabilities passed into a parse call.

    Capabilities are keyed by the *capability type* a consumer asks for,
    never by an implementation's concrete class. Registering the dispatcher
    as ``context.set(AutoDetectParser, parser)`` would leave
    ``context.get(ContentParser)`` empty and container parsers would find
    nothing to hand embedded documents to.
    """

    def __init__(
        self,
        settings: Optional[ExtractionSettings] = None,
        password: Optional[str] = None,
        depth: int = 0,
    ) -> None:
        self.settings = settings or get_settings()
        self.password = password
        self.depth = depth
        self._capabilities: Dict[type, Any] = {}

    def set(self, capability: Type[T], implementation: Optional[T]) -> None:
        """Register ``implementation`` under ``capability`` (None removes it)."""
        if implementation is None:
            self._capabilities.pop(capability, None)
            return
        if not isinstance(implementation, capability):
            raise TypeError(
                f"{type(implementation).__name__} does not implement {capability.__name__}"
            )
        self._capabilities[capability] = implementation

    def get(self, capability: Type[T], default: Optional[T] = None) -> Optional[T]:
        """Look up the implementation registered under exactly ``capability``."""
        return self._capabilities.get(capability, default)

    def has(self, capability: type) -> bool:
        return capability in self._capabilities

    def nested(self) -> ParseContext:
        """Child context for an embedded document, one level deeper.

        Raises:
            NestingDepthError: If the configured maximum depth is exceeded
        """
        depth = self.depth + 1
        if depth > self.settings.max_embedding_depth:
            raise NestingDepthError(
                f"Embedded documents nested deeper than {self.settings.max_embedding_depth}"
            )
        child = ParseContext(settings=self.settings, password=self.password, depth=depth)
        child._capabilities = dict(self._capabilities)
        return child
