"""Router abstract base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from .types import RetrievalDecision, RouterContext


class Router(ABC):
    """Decides which knowledge source grounds the latest turn."""

    @abstractmethod
    async def route(self, context: RouterContext) -> RetrievalDecision:
        """Return exactly one retrieval decision for the given context."""
