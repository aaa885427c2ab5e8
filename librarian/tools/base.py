"""Base classes and types for context-building tools."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from librarian.metadata.cache import RemoteMetadataSnapshot
from librarian.planner.types import RetrievalDecision


@dataclass(slots=True)
class ToolContext:
    """Context provided to a tool invocation."""

    decision: RetrievalDecision
    snapshot: RemoteMetadataSnapshot
    message: str


@dataclass(slots=True)
class ToolResponse:
    """Grounding text for the answering call plus structured details for logs."""

    content: str
    data: dict[str, Any] = field(default_factory=dict)
    success: bool = True


class Tool(ABC):
    """Builds the grounding block for one retrieval decision kind."""

    name: str

    @abstractmethod
    async def run(self, context: ToolContext) -> ToolResponse:
        """Execute the tool given the provided context."""
