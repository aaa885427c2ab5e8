"""Final answering call: governance instruction, mapped history, new turn."""

from __future__ import annotations

import logging
from typing import Sequence

from librarian.llm.gemini import ChatContents, LanguageModel
from librarian.memory.models import USER, ConversationTurn, drop_leading_assistant_turns

logger = logging.getLogger("librarian.answer")

# Highest authority first.
SOURCE_PRECEDENCE = (
    "PREMIUM PRODUCT DATA",
    "TECHNICAL RECORD (product label, Safety Data Sheet)",
    "COMPANY POLICY TEXT (delivery, logistics, catalog notes)",
)

GOVERNANCE_RULES = """GOVERNING CONSTITUTION:
Your primary responsibility is safety, accuracy, and integrity, not speed, confidence, or conversion.

SOURCE OF TRUTH HIERARCHY (NON-NEGOTIABLE):
{precedence}
If sources conflict, the higher source wins. If you cannot anchor an answer to one of these sources,
downgrade to informational guidance, ask a clarifying question, or refuse.

ASSUMPTION BAN:
Never assume the product variant, concentration, surface, environment, training level, other chemicals
present, or PPE availability. Missing context is a blocking condition.

DISCLOSURE RULES:
Do not mention file names, buckets, or where the retrieved data came from.
Refuse to advise on mixing chemicals, altering concentrations, off-label use, or medical, legal or
regulatory decisions.

ESCALATION RULES:
Direct the user to human support when exposure, injury, spill, or emergency is mentioned, when
liability or compliance is involved, or when the user remains confused after clarification.
ALWAYS include: "NOTE: In a medical emergency, call 911 or your local poison control center immediately."

OPERATIONAL STATUS HANDLING:
- STATUS: NO PRODUCT NAMED -> ask which United Formulas product they are using or considering.
- STATUS: UNKNOWN PRODUCT -> say you do not have the technical record for that product yet and offer general safety guidance.
- STATUS: PRODUCT IDENTIFIED -> answer specifically from the retrieved data.
- STATUS: OUT OF DOMAIN -> politely decline and steer back to product questions.
- DELIVERY with no location -> confirm we deliver and ask for their city or zip code.

RETRIEVED DATA FOR YOUR USE (DO NOT MENTION SOURCE):
{context}"""


def build_system_instruction(context_block: str) -> str:
    precedence = "\n".join(f"{rank}. {source}" for rank, source in enumerate(SOURCE_PRECEDENCE, start=1))
    return GOVERNANCE_RULES.format(precedence=precedence, context=context_block)


def map_history(history: Sequence[ConversationTurn]) -> ChatContents:
    """Convert turns to Gemini contents; the conversation must open on a user turn."""

    return [
        {"role": "user" if turn.role == USER else "model", "parts": [{"text": turn.content}]}
        for turn in drop_leading_assistant_turns(history)
    ]


class AnswerInvoker:
    def __init__(self, llm: LanguageModel) -> None:
        self._llm = llm

    async def answer(self, message: str, history: Sequence[ConversationTurn], context_block: str) -> str:
        """Return the model reply verbatim. Model failures propagate to the caller."""

        system_instruction = build_system_instruction(context_block)
        contents = map_history(history)
        logger.debug("Answering with %d history turns", len(contents))
        return await self._llm.chat(system_instruction, contents, message)
