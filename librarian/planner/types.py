"""Retrieval decision variant and the parser for raw classifier output."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import AbstractSet, Sequence

from librarian.memory.models import ConversationTurn
from librarian.metadata.cache import RemoteMetadataSnapshot

# Outputs longer than this are treated as conversational text, not a token.
MAX_TOKEN_LENGTH = 120


class DecisionKind(str, Enum):
    """Closed set of retrieval actions."""

    CLARIFY = "CLARIFY"
    GUIDE = "GUIDE"
    DELIVERY = "DELIVERY"
    USE_CASE = "USE_CASE"
    GENERAL = "GENERAL"
    NONE = "NONE"
    DOCUMENT = "DOCUMENT"


KEYWORD_KINDS = tuple(kind for kind in DecisionKind if kind is not DecisionKind.DOCUMENT)

_KEYWORD_PATTERN = re.compile(
    r"(?<![A-Z0-9_\-./])(" + "|".join(kind.value for kind in KEYWORD_KINDS) + r")(?![A-Z0-9_\-/]|\.[A-Z0-9])"
)
_FENCE_PATTERN = re.compile(r"```[\w-]*\s*\n?(.*?)```", re.DOTALL)


@dataclass(frozen=True, slots=True)
class RetrievalDecision:
    kind: DecisionKind
    document: str | None = None

    def __post_init__(self) -> None:
        if (self.kind is DecisionKind.DOCUMENT) != bool(self.document):
            raise ValueError("document identifier is required for, and only for, DOCUMENT decisions")

    @classmethod
    def of(cls, kind: DecisionKind) -> "RetrievalDecision":
        return cls(kind=kind)

    @classmethod
    def for_document(cls, identifier: str) -> "RetrievalDecision":
        return cls(kind=DecisionKind.DOCUMENT, document=identifier)

    @property
    def label(self) -> str:
        return self.document if self.document else self.kind.value


@dataclass(slots=True)
class RouterContext:
    """Inputs passed to the router when choosing a retrieval action."""

    message: str
    recent_history: Sequence[ConversationTurn]
    snapshot: RemoteMetadataSnapshot


def clean_classifier_output(raw: str) -> str:
    """Strip code fences and quoting and return the first non-empty line."""

    text = raw.strip()
    fenced = _FENCE_PATTERN.search(text)
    if fenced and fenced.group(1).strip():
        text = fenced.group(1).strip()
    text = text.replace("```", "")
    for line in text.splitlines():
        line = line.replace('"', "").replace("'", "").replace("`", "").strip()
        if line:
            return line
    return ""


def parse_decision(raw: str, file_index: AbstractSet[str]) -> RetrievalDecision | None:
    """Parse classifier text into a decision; ``None`` means unparseable.

    Keywords win over document identifiers when both appear.
    """

    line = clean_classifier_output(raw)
    if not line:
        return None

    match = _KEYWORD_PATTERN.search(line.upper())
    if match:
        return RetrievalDecision.of(DecisionKind(match.group(1)))

    if line in file_index:
        return RetrievalDecision.for_document(line)
    for token in line.split():
        token = token.strip(".,;:()[]<>")
        if token in file_index:
            return RetrievalDecision.for_document(token)

    if len(line) > MAX_TOKEN_LENGTH or any(char.isspace() for char in line):
        return None
    return RetrievalDecision.for_document(line)
