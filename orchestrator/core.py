"""
SearchOrchestrator - adequacy-gated search loop.

Per message:
1. Ask the search-need classifier whether fresh information is required.
2. If so, search and stream an answer grounded in the results.
3. Otherwise draft an answer, ask the adequacy classifier to review it, and
   either replay the draft or (once) search and stream a regenerated answer.

Key guarantees:
- Exactly one DoneEvent, always last, unless the call raises or the consumer disconnects
- Completion failures before any content are raised; after content, Error then Done
- Search failures never end a request
- The adequacy classifier runs at most once per request
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from api.base_client import BaseCompletionClient, Messages
from models.conversation import ConversationTurn
from models.date_context import DateContext
from models.decision import Decision
from models.errors import ConfigMissing, InvalidRequest, user_message
from models.stream_events import ContentEvent, DoneEvent, ErrorEvent, Phase, ProgressEvent
from orchestrator.advisors import AdequacyAdvisor, SearchNeedAdvisor
from orchestrator.prompts import build_answer_system_prompt
from orchestrator.sinks import EventSink, SinkClosed
from tools.web.contracts import SearchProvider, SearchResult
from tools.web.research_pack import build_evidence_section
from utils.logger import get_logger

logger = get_logger(__name__)


class OrchestrationState(str, Enum):
    ASSESSING_NEED = "assessing_need"
    SEARCHING_INITIAL = "searching_initial"
    GENERATING_DRAFT = "generating_draft"
    ASSESSING_ADEQUACY = "assessing_adequacy"
    SEARCHING_RETRY = "searching_retry"
    EMITTING_DRAFT = "emitting_draft"
    STREAMING = "streaming"
    DONE = "done"


@dataclass(frozen=True)
class OrchestratorPolicy:
    draft_chunk_size: int = 10
    max_retries: int = 1

    def __post_init__(self):
        if self.draft_chunk_size < 1:
            raise ValueError("draft_chunk_size must be >= 1")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")


class RetryBudget:
    """Search-and-regenerate cycles left for one request."""

    def __init__(self, remaining: int):
        self.remaining = remaining

    def consume(self) -> bool:
        if self.remaining <= 0:
            return False
        self.remaining -= 1
        return True


def chunk_text(text: str, size: int) -> list[str]:
    """Contiguous, non-overlapping slices of `text` that concatenate back to it."""
    return [text[i : i + size] for i in range(0, len(text), size)]


@dataclass
class _Run:
    """Mutable state of one handle() call; never shared."""

    message: str
    model: str
    history: Sequence[ConversationTurn]
    sink: EventSink
    date_context: DateContext
    budget: RetryBudget
    state: OrchestrationState = OrchestrationState.ASSESSING_NEED
    need: Decision | None = None
    results: list[SearchResult] = field(default_factory=list)
    draft: str = ""
    retry_query: str = ""
    content_started: bool = False


class SearchOrchestrator:
    def __init__(
        self,
        completion_client: BaseCompletionClient,
        search_provider: SearchProvider,
        *,
        policy: OrchestratorPolicy | None = None,
        need_advisor: SearchNeedAdvisor | None = None,
        adequacy_advisor: AdequacyAdvisor | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.completion_client = completion_client
        self.search_provider = search_provider
        self.policy = policy or OrchestratorPolicy()
        self.need_advisor = need_advisor or SearchNeedAdvisor(completion_client)
        self.adequacy_advisor = adequacy_advisor or AdequacyAdvisor(completion_client)
        self._clock = clock or datetime.now

    # ---------- public API ----------

    def handle(
        self,
        message: str,
        model: str,
        history: Sequence[ConversationTurn] | None,
        sink: EventSink,
    ) -> None:
        """
        Run the orchestration for one chat message, writing every event to `sink`.

        Raises:
            InvalidRequest: message or model missing (nothing is written)
            AuthFailure / TransportFailure: completion failed before any content was sent
        """
        if not message or not message.strip():
            raise InvalidRequest("Message is required")
        if not model or not model.strip():
            raise InvalidRequest("Model is required. Please select a model.")

        run = _Run(
            message=message,
            model=model.strip(),
            history=tuple(history or ()),
            sink=sink,
            date_context=DateContext.capture(self._clock()),
            budget=RetryBudget(self.policy.max_retries),
        )

        try:
            self._drive(run)
        except SinkClosed:
            logger.info(
                "Event sink closed by consumer; abandoning request",
                extra={"extra_fields": {"state": run.state.value, "model": run.model}},
            )
            return
        except Exception as e:
            if not run.content_started:
                logger.error(
                    f"Request failed before streaming: {type(e).__name__}",
                    extra={"extra_fields": {"state": run.state.value, "model": run.model, "error": str(e)}},
                )
                raise
            logger.error(
                f"Request failed mid-stream: {type(e).__name__}",
                extra={"extra_fields": {"state": run.state.value, "model": run.model, "error": str(e)}},
            )
            self._fail_in_band(run, e)

    # ---------- state machine ----------

    def _drive(self, run: _Run) -> None:
        while run.state is not OrchestrationState.DONE:
            logger.debug(f"Orchestrator state: {run.state.value}")
            if run.state is OrchestrationState.ASSESSING_NEED:
                self._progress(run, Phase.REASONING, "Analyzing...")
                run.need = self.need_advisor.assess(run.message, model=run.model, date_context=run.date_context)
                if run.need.needs_search and run.need.search_query:
                    run.state = OrchestrationState.SEARCHING_INITIAL
                else:
                    run.state = OrchestrationState.GENERATING_DRAFT

            elif run.state is OrchestrationState.SEARCHING_INITIAL:
                run.results = self._search(run, run.need.search_query)
                run.state = OrchestrationState.STREAMING

            elif run.state is OrchestrationState.GENERATING_DRAFT:
                self._progress(run, Phase.THINKING, "Generating...")
                result = self.completion_client.complete_buffered(run.model, self._build_messages(run, []))
                run.draft = result.text
                run.state = OrchestrationState.ASSESSING_ADEQUACY

            elif run.state is OrchestrationState.ASSESSING_ADEQUACY:
                self._progress(run, Phase.REASONING, "Verifying...")
                verdict = self.adequacy_advisor.assess(
                    run.message, run.draft, model=run.model, date_context=run.date_context
                )
                if not verdict.needs_search:
                    run.state = OrchestrationState.EMITTING_DRAFT
                elif run.budget.consume():
                    run.retry_query = self._pick_retry_query(run, verdict)
                    run.state = OrchestrationState.SEARCHING_RETRY
                else:
                    logger.info("Draft judged inadequate but retry budget exhausted; sending draft")
                    run.state = OrchestrationState.EMITTING_DRAFT

            elif run.state is OrchestrationState.SEARCHING_RETRY:
                run.results = self._search(run, run.retry_query)
                run.state = OrchestrationState.STREAMING

            elif run.state is OrchestrationState.STREAMING:
                self._stream_answer(run)
                run.state = OrchestrationState.DONE

            elif run.state is OrchestrationState.EMITTING_DRAFT:
                for piece in chunk_text(run.draft, self.policy.draft_chunk_size):
                    self._content(run, piece)
                run.state = OrchestrationState.DONE

        run.sink.push(DoneEvent())
        run.sink.close()

    # ---------- steps ----------

    def _pick_retry_query(self, run: _Run, verdict: Decision) -> str:
        need_query = run.need.search_query if run.need else ""
        for candidate in (verdict.search_query, need_query, run.message):
            if candidate and candidate.strip():
                return candidate.strip()
        return run.message

    def _search(self, run: _Run, query: str) -> list[SearchResult]:
        self._progress(run, Phase.SEARCH, f"Searching for: {query}")
        try:
            results = list(self.search_provider.search(query))
        except Exception as e:
            logger.warning(
                "Search failed; answering without evidence",
                extra={"extra_fields": {"query": query, "error_type": type(e).__name__, "error": str(e)}},
            )
            notice = e.message if isinstance(e, ConfigMissing) else f"Search failed: {user_message(e)}"
            self._progress(run, Phase.ERROR, notice)
            return []

        if results:
            self._progress(run, Phase.SEARCH, f"Found {len(results)} result(s)")
        else:
            self._progress(run, Phase.SEARCH, "No results found")
        logger.info("Search finished", extra={"extra_fields": {"query": query, "result_count": len(results)}})
        return results

    def _stream_answer(self, run: _Run) -> None:
        stream = self.completion_client.complete_incremental(run.model, self._build_messages(run, run.results))
        try:
            for fragment in stream:
                self._content(run, fragment)
        finally:
            close = getattr(stream, "close", None)
            if callable(close):
                close()

    def _build_messages(self, run: _Run, results: list[SearchResult]) -> Messages:
        system_prompt = build_answer_system_prompt(run.date_context, build_evidence_section(results))
        return [
            {"role": "system", "content": system_prompt},
            *[turn.to_message() for turn in run.history],
            {"role": "user", "content": run.message},
        ]

    # ---------- emission ----------

    def _progress(self, run: _Run, phase: Phase, message: str) -> None:
        run.sink.push(ProgressEvent(phase=phase, message=message))

    def _content(self, run: _Run, text: str) -> None:
        run.sink.push(ContentEvent(text=text))
        run.content_started = True

    def _fail_in_band(self, run: _Run, error: Exception) -> None:
        try:
            run.sink.push(ErrorEvent(message=user_message(error)))
            run.sink.push(DoneEvent())
            run.sink.close()
        except SinkClosed:
            logger.info("Event sink closed before the error could be delivered")
