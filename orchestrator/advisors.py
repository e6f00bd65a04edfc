"""
Classifier advisors.

Both advisors ask the completion backend for a structured yes/no verdict and
always return a Decision: any failure (transport, auth, unparseable reply)
degrades to "no search".
"""

from api.base_client import BaseCompletionClient
from models.date_context import DateContext
from models.decision import Decision
from orchestrator.json_extract import coerce_bool, extract_json_object
from orchestrator.prompts import build_adequacy_prompt, build_search_need_prompt
from utils.logger import get_logger

logger = get_logger(__name__)


class _DecisionAdvisor:
    kind = "advisor"

    def __init__(self, completion_client: BaseCompletionClient):
        self.completion_client = completion_client

    def _judge(self, prompt: str, *, model: str, fallback_query: str) -> Decision:
        messages = [{"role": "user", "content": prompt}]
        try:
            result = self.completion_client.complete_buffered(model, messages)
        except Exception as e:
            logger.warning(
                f"{self.kind} call failed; assuming no search",
                extra={"extra_fields": {"advisor": self.kind, "error_type": type(e).__name__, "error": str(e)}},
            )
            return Decision.no_search(f"{self.kind} unavailable: {e}")

        return self._to_decision(result.text, fallback_query=fallback_query)

    def _to_decision(self, raw: str, *, fallback_query: str) -> Decision:
        decoded = extract_json_object(raw)
        if not decoded.ok:
            logger.warning(
                f"{self.kind} reply unparseable; assuming no search",
                extra={"extra_fields": {"advisor": self.kind, "error": decoded.error, "raw": (raw or "")[:200]}},
            )
            return Decision.no_search(f"Could not parse {self.kind} response: {decoded.error}")

        payload = decoded.value or {}
        needs_search = coerce_bool(payload.get("needsSearch"))
        if needs_search is None:
            logger.warning(
                f"{self.kind} reply missing needsSearch; assuming no search",
                extra={"extra_fields": {"advisor": self.kind, "payload": payload}},
            )
            return Decision.no_search(f"Could not parse {self.kind} response: missing needsSearch")

        reasoning = str(payload.get("reasoning") or "").strip()
        query = str(payload.get("searchQuery") or "").strip()
        if needs_search and not query:
            query = fallback_query.strip()
            if not query:
                return Decision.no_search(reasoning)

        decision = Decision(needs_search=needs_search, search_query=query, reasoning=reasoning)
        logger.info(
            f"{self.kind} verdict",
            extra={"extra_fields": {"advisor": self.kind, **decision.to_dict()}},
        )
        return decision


class SearchNeedAdvisor(_DecisionAdvisor):
    """Classifies a raw user question as needing fresh information or not."""

    kind = "search-need classifier"

    def assess(self, question: str, *, model: str, date_context: DateContext) -> Decision:
        prompt = build_search_need_prompt(question, date_context)
        return self._judge(prompt, model=model, fallback_query=question)


class AdequacyAdvisor(_DecisionAdvisor):
    """
    Judges a draft answer (generated without search) against the question.

    needs_search=True means the draft was inadequate and search_query says
    what to look up.
    """

    kind = "adequacy classifier"

    def assess(self, question: str, draft_answer: str, *, model: str, date_context: DateContext) -> Decision:
        prompt = build_adequacy_prompt(question, draft_answer, date_context)
        return self._judge(prompt, model=model, fallback_query=question)
