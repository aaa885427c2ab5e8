"""Chat pipeline: admission, metadata, routing, context assembly, answering."""

from __future__ import annotations

import logging
from typing import Any

from librarian.answer.invoker import AnswerInvoker
from librarian.core.errors import ChatError, InternalError
from librarian.core.metrics import MetricsCollector
from librarian.guard.admission import InputGuard
from librarian.metadata.cache import MetadataCache
from librarian.planner.base import Router
from librarian.planner.types import RouterContext
from librarian.tools.router import ToolRouter

logger = logging.getLogger("librarian.pipeline")


class ChatPipeline:
    """Run one inbound chat request end to end.

    Every failure leaves as a :class:`ChatError`; model failures become a
    generic :class:`InternalError`.
    """

    def __init__(
        self,
        *,
        guard: InputGuard,
        cache: MetadataCache,
        router: Router,
        assembler: ToolRouter,
        invoker: AnswerInvoker,
        metrics: MetricsCollector,
        router_history_turns: int = 4,
    ) -> None:
        self.guard = guard
        self.cache = cache
        self.router = router
        self.assembler = assembler
        self.invoker = invoker
        self.metrics = metrics
        self.router_history_turns = router_history_turns

    async def handle(self, raw_message: Any, raw_history: Any, client_id: str) -> str:
        try:
            request = self.guard.admit(raw_message, raw_history, client_id)
        except ChatError as exc:
            self.metrics.record_rejection(exc.code)
            raise

        try:
            snapshot = await self.cache.get()
            recent = request.history[-self.router_history_turns:] if self.router_history_turns else ()
            decision = await self.router.route(
                RouterContext(message=request.message, recent_history=recent, snapshot=snapshot)
            )
            self.metrics.record_request(decision.kind.value)

            context_block = await self.assembler.assemble(decision, snapshot, request.message)
            return await self.invoker.answer(request.message, request.history, context_block)
        except ChatError as exc:
            self.metrics.record_rejection(exc.code)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Chat pipeline failed")
            self.metrics.record_rejection(InternalError.code)
            raise InternalError() from exc
