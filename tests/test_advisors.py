import pytest

from conftest import FIXED_NOW, FakeCompletionClient, verdict
from models.date_context import DateContext
from models.decision import Decision
from models.errors import AuthFailure
from orchestrator.advisors import AdequacyAdvisor, SearchNeedAdvisor
from orchestrator.json_extract import coerce_bool, extract_json_object

DATE = DateContext.capture(FIXED_NOW)


# ---------- JSON extraction ----------


def test_extracts_object_wrapped_in_prose_and_fences():
    raw = 'Sure! Here you go:\n```json\n{"needsSearch": true, "searchQuery": "x"}\n```\nHope that helps.'
    result = extract_json_object(raw)
    assert result.ok
    assert result.value == {"needsSearch": True, "searchQuery": "x"}


@pytest.mark.parametrize(
    "raw,reason",
    [
        ("", "empty"),
        ("no braces here", "no JSON object"),
        ("{not: valid}", "invalid JSON"),
        ("} backwards {", "no JSON object"),
    ],
)
def test_extraction_failures_are_values(raw, reason):
    result = extract_json_object(raw)
    assert not result.ok
    assert result.value is None
    assert reason in result.error


def test_stray_closing_brace_after_object_rejected():
    result = extract_json_object('{"a": 1} trailing }')
    assert not result.ok
    assert "invalid JSON" in result.error


@pytest.mark.parametrize(
    "value,expected",
    [(True, True), (False, False), ("true", True), ("No", False), (1, True), (0, False), ("maybe", None), (None, None)],
)
def test_coerce_bool(value, expected):
    assert coerce_bool(value) is expected


# ---------- Decision invariants ----------


def test_decision_clears_query_when_no_search():
    decision = Decision(needs_search=False, search_query="leftover", reasoning="timeless")
    assert decision.search_query == ""


def test_decision_requires_query_when_searching():
    with pytest.raises(ValueError):
        Decision(needs_search=True, search_query="   ")


def test_decision_to_dict():
    assert Decision(True, " q ", "r").to_dict() == {"needsSearch": True, "searchQuery": "q", "reasoning": "r"}


# ---------- advisors ----------


def test_search_need_advisor_parses_verdict():
    client = FakeCompletionClient(buffered=[verdict(True, "nba finals 2025", "current event")])

    decision = SearchNeedAdvisor(client).assess("Who won the NBA finals?", model="m", date_context=DATE)

    assert decision == Decision(True, "nba finals 2025", "current event")
    model, messages = client.buffered_calls[0]
    assert model == "m"
    assert messages[0]["role"] == "user"
    assert "Who won the NBA finals?" in messages[0]["content"]


def test_string_booleans_accepted():
    client = FakeCompletionClient(buffered=['{"needsSearch": "false", "searchQuery": "ignored"}'])

    decision = SearchNeedAdvisor(client).assess("What is 2+2?", model="m", date_context=DATE)

    assert decision.needs_search is False
    assert decision.search_query == ""


@pytest.mark.parametrize("reply", ["garbage", '{"searchQuery": "x"}', '{"needsSearch": "perhaps"}'])
def test_unusable_reply_means_no_search(reply):
    client = FakeCompletionClient(buffered=[reply])

    decision = SearchNeedAdvisor(client).assess("q", model="m", date_context=DATE)

    assert decision.needs_search is False
    assert "Could not parse" in decision.reasoning


def test_backend_failure_means_no_search():
    client = FakeCompletionClient(buffered=[AuthFailure("bad key")])

    decision = AdequacyAdvisor(client).assess("q", "draft", model="m", date_context=DATE)

    assert decision.needs_search is False
    assert "unavailable" in decision.reasoning


def test_adequacy_advisor_blank_query_uses_question():
    client = FakeCompletionClient(buffered=[verdict(True, "")])

    decision = AdequacyAdvisor(client).assess("Who is the UK prime minister?", "I believe...", model="m", date_context=DATE)

    assert decision.needs_search is True
    assert decision.search_query == "Who is the UK prime minister?"
    assert "I believe..." in client.buffered_calls[0][1][0]["content"]
