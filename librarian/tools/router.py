"""Context assembler mapping retrieval decisions to tool implementations."""

from __future__ import annotations

import logging
from typing import Mapping

from librarian.core.metrics import MetricsCollector
from librarian.metadata.cache import RemoteMetadataSnapshot
from librarian.planner.types import DecisionKind, RetrievalDecision
from librarian.tools.base import Tool, ToolContext, ToolResponse

logger = logging.getLogger("librarian.tools")


class ToolRouter:
    """Dispatch decisions to one tool per decision kind.

    Construction fails unless every :class:`DecisionKind` has a tool, so a
    new kind cannot silently fall through.
    """

    def __init__(self, tools: Mapping[DecisionKind, Tool], metrics: MetricsCollector | None = None) -> None:
        missing = [kind.value for kind in DecisionKind if kind not in tools]
        if missing:
            raise ValueError(f"No context tool registered for: {', '.join(missing)}")
        self._tools = dict(tools)
        self._metrics = metrics

    async def dispatch(
        self,
        decision: RetrievalDecision,
        snapshot: RemoteMetadataSnapshot,
        message: str,
    ) -> ToolResponse:
        context = ToolContext(decision=decision, snapshot=snapshot, message=message)
        return await self._tools[decision.kind].run(context)

    async def assemble(self, decision: RetrievalDecision, snapshot: RemoteMetadataSnapshot, message: str) -> str:
        """Return the grounding block for ``decision``; always a string.

        Tools that could not produce their data are counted as degraded
        under ``tool:<name>``.
        """

        tool = self._tools[decision.kind]
        response = await self.dispatch(decision, snapshot, message)
        logger.info("Tool %s finished (success=%s, data=%s)", tool.name, response.success, response.data)
        if not response.success and self._metrics is not None:
            self._metrics.record_degraded(f"tool:{tool.name}")
        return response.content or ""
