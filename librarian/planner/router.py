"""Classifier-backed intent router with a keyword safety net."""

from __future__ import annotations

import logging
import re

from librarian.llm.gemini import LanguageModel
from librarian.memory.models import render_transcript
from librarian.planner.base import Router
from librarian.planner.types import DecisionKind, RetrievalDecision, RouterContext, parse_decision

logger = logging.getLogger("librarian.router")

# Matched at word starts, so product names that contain a keyword ("Odor Out") and
# words built on one ("odorless") also route to the catalog instead of the named record.
CATEGORY_KEYWORDS = {
    "degreaser",
    "cleaner",
    "disinfectant",
    "sanitizer",
    "deodorizer",
    "odor",
    "stain",
    "grease",
    "floor",
    "carpet",
    "laundry",
    "detergent",
    "bathroom",
    "toilet",
    "kitchen",
    "glass",
    "rust",
    "mold",
    "mildew",
    "descaler",
    "soap",
    "wax",
    "stripper",
    "polish",
}

KEYWORD_MISSPELLINGS = {
    "degreasor",
    "degreeser",
    "degresser",
    "cleanr",
    "claner",
    "disinfectent",
    "desinfectant",
    "disenfectant",
    "sanitiser",
    "santizer",
    "deodoriser",
    "odour",
    "mould",
    "mildue",
    "detergant",
    "laundary",
    "carpit",
}

# The model recognised one of these; the keyword safety net must not override it.
OVERRIDE_EXEMPT = {DecisionKind.USE_CASE, DecisionKind.DELIVERY, DecisionKind.CLARIFY}

CLASSIFIER_RULES = """SELECTION RULES:
1. TECHNICAL/SAFETY: If the user asks about safety, use, or first aid but NO product has been named in the current message OR the RECENT CONTEXT, return "CLARIFY".
2. If a product is mentioned (in message OR context), pick its grounding file from AVAILABLE FILES.
3. If a product is mentioned but is NOT in the guide or file list, return "NONE".
4. Use the PRODUCT GUIDE to map names, nicknames and misspellings to technical files.
5. If asking for RECOMMENDATIONS or browsing a category, return "GUIDE".
6. If describing a PROBLEM to solve (a stain, smell, surface) without naming a product, return "USE_CASE".
7. If asking about DELIVERY, shipping or a zip code, return "DELIVERY".
8. If the question has nothing to do with our products or services, return "GENERAL".
9. RETURN ONLY THE FILENAME or "GUIDE" or "DELIVERY" or "USE_CASE" or "GENERAL" or "CLARIFY" or "NONE"."""


_CATEGORY_PATTERN = re.compile(
    r"\b(?:" + "|".join(sorted(CATEGORY_KEYWORDS | KEYWORD_MISSPELLINGS)) + r")",
    re.IGNORECASE,
)


def mentions_category(message: str) -> bool:
    """Whether the message names a product category or problem, typos included.

    Keywords match at a word start so plurals count and ``trust`` is not ``rust``.
    """

    return _CATEGORY_PATTERN.search(message) is not None


class IntentRouter(Router):
    """Ask the classifier for one token, then parse and sanity-check it."""

    def __init__(self, llm: LanguageModel) -> None:
        self._llm = llm

    async def route(self, context: RouterContext) -> RetrievalDecision:
        prompt = self.build_prompt(context)
        raw = await self._llm.classify(prompt)
        decision = self.interpret(raw, context)
        logger.info("Routed to %s (raw=%r)", decision.label, raw[:80])
        return decision

    def interpret(self, raw: str, context: RouterContext) -> RetrievalDecision:
        category_hit = mentions_category(context.message)
        decision = parse_decision(raw, context.snapshot.file_index)

        if decision is None:
            fallback = DecisionKind.GUIDE if category_hit else DecisionKind.NONE
            logger.warning("Unparseable classifier output, falling back to %s", fallback.value)
            return RetrievalDecision.of(fallback)

        if category_hit and decision.kind not in OVERRIDE_EXEMPT and decision.kind is not DecisionKind.GUIDE:
            logger.info("Category keyword override: %s -> GUIDE", decision.label)
            return RetrievalDecision.of(DecisionKind.GUIDE)

        return decision

    def build_prompt(self, context: RouterContext) -> str:
        snapshot = context.snapshot
        use_cases = "\n".join(f"- {case.problem} -> {case.solution}" for case in snapshot.use_cases)
        files = "\n".join(sorted(snapshot.file_index))
        return "\n\n".join(
            [
                'You are the "Master Librarian" for United Formulas. Your job is to pick the BEST '
                "source to answer the user's question, using recent history for context.",
                f"RECENT CONTEXT:\n{render_transcript(context.recent_history)}",
                f'USER QUESTION: "{context.message}"',
                f"PRODUCT GUIDE (MAPPING):\n{snapshot.catalog_guide}",
                f"USE CASES (PROBLEM -> SOLUTION):\n{use_cases or 'None available.'}",
                f"AVAILABLE FILES:\n{files}",
                CLASSIFIER_RULES,
            ]
        )
