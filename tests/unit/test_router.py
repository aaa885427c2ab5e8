import asyncio

import pytest

from librarian.memory.models import ConversationTurn
from librarian.planner.router import IntentRouter, mentions_category
from librarian.planner.types import (
    DecisionKind,
    RetrievalDecision,
    RouterContext,
    clean_classifier_output,
    parse_decision,
)
from tests.fakes import DELTA_GREEN_FILE, FakeLanguageModel

FILES = frozenset({DELTA_GREEN_FILE, "guide.txt"})


def route(raw, message, snapshot, history=()):
    router = IntentRouter(FakeLanguageModel(classification=raw))
    context = RouterContext(message=message, recent_history=list(history), snapshot=snapshot)
    return asyncio.run(router.route(context))


@pytest.mark.parametrize(
    ("raw", "cleaned"),
    [
        ("```\nGUIDE\n```", "GUIDE"),
        ("```text\nDELIVERY```", "DELIVERY"),
        ("```CLARIFY```", "CLARIFY"),
        ('"NONE"', "NONE"),
        ("\n\n`USE_CASE`\nbecause the user described a stain", "USE_CASE"),
    ],
)
def test_clean_classifier_output(raw, cleaned):
    assert clean_classifier_output(raw) == cleaned


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("GUIDE", RetrievalDecision.of(DecisionKind.GUIDE)),
        ("delivery.", RetrievalDecision.of(DecisionKind.DELIVERY)),
        ("STATUS: CLARIFY", RetrievalDecision.of(DecisionKind.CLARIFY)),
        (f"GUIDE {DELTA_GREEN_FILE}", RetrievalDecision.of(DecisionKind.GUIDE)),
        (DELTA_GREEN_FILE, RetrievalDecision.for_document(DELTA_GREEN_FILE)),
        (f"USE FILE: {DELTA_GREEN_FILE}", RetrievalDecision.for_document(DELTA_GREEN_FILE)),
        ("guide.txt", RetrievalDecision.for_document("guide.txt")),
        ("grounding__unknown.txt", RetrievalDecision.for_document("grounding__unknown.txt")),
    ],
)
def test_parse_decision(raw, expected):
    assert parse_decision(raw, FILES) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "I think the user wants to know about our products", "x" * 121],
)
def test_parse_decision_unparseable(raw):
    assert parse_decision(raw, FILES) is None


def test_document_decision_requires_identifier():
    with pytest.raises(ValueError):
        RetrievalDecision(kind=DecisionKind.DOCUMENT)
    with pytest.raises(ValueError):
        RetrievalDecision(kind=DecisionKind.GUIDE, document="x.txt")


@pytest.mark.parametrize(
    ("message", "hit"),
    [
        ("do you have a floor degreaser", True),
        ("need a degreasor for my shop", True),
        ("something for MOULD in the shower", True),
        ("Disinfectants?", True),
        ("I trust your judgement", False),
        ("where is my order", False),
    ],
)
def test_mentions_category(message, hit):
    assert mentions_category(message) is hit


def test_keyword_override_forces_guide(snapshot):
    decision = route("NONE", "do you have a floor degreaser", snapshot)

    assert decision == RetrievalDecision.of(DecisionKind.GUIDE)


def test_keyword_override_applies_to_documents(snapshot):
    decision = route(DELTA_GREEN_FILE, "best degreaser for kitchens?", snapshot)

    assert decision.kind is DecisionKind.GUIDE


@pytest.mark.parametrize("message", ["Is Odor Out safe for pets?", "is Delta Green odorless?"])
def test_keyword_inside_product_name_still_forces_guide(snapshot, message):
    decision = route(DELTA_GREEN_FILE, message, snapshot)

    assert decision.kind is DecisionKind.GUIDE


@pytest.mark.parametrize("raw", ["USE_CASE", "DELIVERY", "CLARIFY"])
def test_keyword_override_respects_exempt_decisions(snapshot, raw):
    decision = route(raw, "can you deliver floor cleaner to 59401", snapshot)

    assert decision.kind is DecisionKind(raw)


def test_unparseable_output_falls_back_to_guide_on_keyword(snapshot):
    decision = route("Sure! Let me look that up for you.", "any good carpit cleaner?", snapshot)

    assert decision.kind is DecisionKind.GUIDE


def test_unparseable_output_falls_back_to_none(snapshot):
    decision = route("Sure! Let me look that up for you.", "what about that one", snapshot)

    assert decision.kind is DecisionKind.NONE


def test_document_choice_kept_without_keyword(snapshot):
    decision = route(DELTA_GREEN_FILE, "is delta green safe on skin?", snapshot)

    assert decision == RetrievalDecision.for_document(DELTA_GREEN_FILE)


def test_prompt_includes_history_guide_use_cases_and_files(snapshot):
    llm = FakeLanguageModel(classification="CLARIFY")
    router = IntentRouter(llm)
    history = [ConversationTurn("user", "tell me about Delta Green"), ConversationTurn("assistant", "Sure.")]

    asyncio.run(router.route(RouterContext(message="is it toxic", recent_history=history, snapshot=snapshot)))

    prompt = llm.prompts[0]
    assert "user: tell me about Delta Green" in prompt
    assert 'USER QUESTION: "is it toxic"' in prompt
    assert "Grease buildup on kitchen floors -> Delta Green" in prompt
    assert DELTA_GREEN_FILE in prompt
    assert "Delta Green | degreaser" in prompt


def test_classifier_failure_propagates(snapshot):
    router = IntentRouter(FakeLanguageModel(classification=RuntimeError("quota exceeded")))

    with pytest.raises(RuntimeError):
        asyncio.run(router.route(RouterContext(message="hi", recent_history=[], snapshot=snapshot)))
