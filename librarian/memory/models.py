"""Dataclasses representing conversation turns and history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

Role = Literal["user", "assistant"]

USER: Role = "user"
ASSISTANT: Role = "assistant"


@dataclass(frozen=True, slots=True)
class ConversationTurn:
    """Single accepted conversational turn."""

    role: Role
    content: str


ConversationHistory = tuple[ConversationTurn, ...]


def drop_leading_assistant_turns(turns: Sequence[ConversationTurn]) -> ConversationHistory:
    """Return ``turns`` without the assistant turns that precede the first user turn."""

    start = 0
    while start < len(turns) and turns[start].role != USER:
        start += 1
    return tuple(turns[start:])


def render_transcript(turns: Sequence[ConversationTurn]) -> str:
    return "\n".join(f"{turn.role}: {turn.content}" for turn in turns)
