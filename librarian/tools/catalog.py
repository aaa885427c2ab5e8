"""Catalog guide and use-case map tools."""

from __future__ import annotations

import re

from librarian.metadata.cache import UseCase
from librarian.tools.base import Tool, ToolContext, ToolResponse

_STOPWORDS = {"a", "an", "the", "my", "on", "in", "of", "to", "and", "or", "is", "it", "how", "i", "do", "get", "out"}


class GuideTool(Tool):
    """Return the full catalog guide."""

    name = "guide"

    async def run(self, context: ToolContext) -> ToolResponse:
        guide = context.snapshot.catalog_guide
        if not guide.strip():
            return ToolResponse(
                content="STATUS: CATALOG UNAVAILABLE. The product catalog could not be loaded; "
                "offer to connect the user with support for recommendations.",
                success=False,
            )
        return ToolResponse(content=f"STATUS: PRODUCT IDENTIFIED (CATALOG). FULL PRODUCT CATALOG & MAPPING GUIDE:\n{guide}")


class UseCaseTool(Tool):
    """Return the problem -> solution map with the closest pair first."""

    name = "use_case"

    async def run(self, context: ToolContext) -> ToolResponse:
        use_cases = context.snapshot.use_cases
        if not use_cases:
            return ToolResponse(
                content="STATUS: USE CASE MAP UNAVAILABLE. Ask what surface or problem they are "
                "dealing with and suggest browsing the catalog.",
                success=False,
            )

        best = best_use_case(context.message, use_cases)
        lines = [f"- PROBLEM: {case.problem} -> SOLUTION: {case.solution}" for case in use_cases]
        header = "STATUS: USE CASE MATCHING. Surface the problem -> solution pair that matches the user's problem."
        if best is not None:
            header += f"\nLIKELY MATCH: {best.problem} -> {best.solution}"
        return ToolResponse(
            content=f"{header}\nUSE CASE MAP:\n" + "\n".join(lines),
            data={"likely_match": best.problem if best else None},
        )


def _tokens(text: str) -> set[str]:
    return {token for token in re.findall(r"[a-z0-9]+", text.lower()) if token not in _STOPWORDS}


def best_use_case(message: str, use_cases: tuple[UseCase, ...]) -> UseCase | None:
    wanted = _tokens(message)
    best: UseCase | None = None
    best_score = 0
    for case in use_cases:
        score = len(wanted & _tokens(case.problem))
        if score > best_score:
            best, best_score = case, score
    return best
