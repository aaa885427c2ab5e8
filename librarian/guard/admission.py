"""Request admission: credentials, per-client quota and input bounds."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from librarian.core.config import Settings
from librarian.core.errors import ConfigurationError, RateLimitError, ValidationError
from librarian.core.rate_limit import QuotaStore
from librarian.memory.models import ASSISTANT, USER, ConversationHistory, ConversationTurn

logger = logging.getLogger("librarian.guard")


@dataclass(frozen=True, slots=True)
class AdmittedRequest:
    message: str
    history: ConversationHistory


def sanitize_history(
    raw_history: Any,
    *,
    max_message_length: int,
    max_items: int,
    max_chars: int,
) -> ConversationHistory:
    """Coerce client-supplied history into a bounded list of turns.

    Non-object entries and empty contents are dropped, roles collapse to
    ``user``/``assistant`` and contents are truncated. The most recent
    ``max_items`` entries are kept, then the oldest are dropped until the
    total content length fits ``max_chars``. Leading assistant turns are
    kept; :func:`librarian.answer.invoker.map_history` strips them.
    """

    if not raw_history:
        return ()

    turns: list[ConversationTurn] = []
    for entry in raw_history:
        if not isinstance(entry, dict):
            continue
        content = entry.get("content")
        if not isinstance(content, str):
            continue
        content = content[:max_message_length]
        if not content.strip():
            continue
        role = USER if entry.get("role") == USER else ASSISTANT
        turns.append(ConversationTurn(role=role, content=content))

    turns = turns[-max_items:] if max_items > 0 else []

    total = sum(len(turn.content) for turn in turns)
    start = 0
    while start < len(turns) and total > max_chars:
        total -= len(turns[start].content)
        start += 1

    return tuple(turns[start:])


class InputGuard:
    """Single point of admission control for the chat endpoint."""

    def __init__(self, settings: Settings, quota: QuotaStore) -> None:
        self._settings = settings
        self._quota = quota

    def teardown(self) -> None:
        self._quota.clear()

    def admit(self, raw_message: Any, raw_history: Any, client_id: str) -> AdmittedRequest:
        settings = self._settings
        if not settings.gemini_enabled:
            logger.error("Gemini API key is not configured")
            raise ConfigurationError("Missing generative-language credentials")

        if settings.rate_limit_enabled:
            decision = self._quota.hit(client_id)
            if not decision.allowed:
                retry_after = max(1, math.ceil(decision.retry_after))
                logger.warning("Quota exhausted for %s", client_id)
                raise RateLimitError(
                    f"Retry after {retry_after} seconds",
                    headers={
                        "Retry-After": str(retry_after),
                        "X-RateLimit-Limit": str(decision.limit),
                        "X-RateLimit-Remaining": "0",
                    },
                )

        if not isinstance(raw_message, str):
            raise ValidationError("Message is required")
        message = raw_message.strip()
        if not message:
            raise ValidationError("Message is required")
        if len(message) > settings.max_message_length:
            raise ValidationError(f"Message exceeds {settings.max_message_length} characters")

        if raw_history is not None and not isinstance(raw_history, list):
            raise ValidationError("History must be a list of turns")

        history = sanitize_history(
            raw_history,
            max_message_length=settings.max_message_length,
            max_items=settings.max_history_items,
            max_chars=settings.max_history_chars,
        )
        return AdmittedRequest(message=message, history=history)
