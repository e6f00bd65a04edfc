from dataclasses import dataclass


@dataclass(frozen=True)
class Decision:
    """
    Structured verdict produced by both advisors.

    `search_query` is cleared whenever `needs_search` is false, and a decision
    that asks for a search must say what to search for.
    """

    needs_search: bool
    search_query: str = ""
    reasoning: str = ""

    def __post_init__(self):
        query = (self.search_query or "").strip()
        if not self.needs_search:
            query = ""
        elif not query:
            raise ValueError("needs_search=True requires a non-empty search_query")
        object.__setattr__(self, "search_query", query)
        object.__setattr__(self, "reasoning", self.reasoning or "")

    @classmethod
    def no_search(cls, reasoning: str = "") -> "Decision":
        return cls(needs_search=False, search_query="", reasoning=reasoning)

    def to_dict(self) -> dict:
        return {
            "needsSearch": self.needs_search,
            "searchQuery": self.search_query,
            "reasoning": self.reasoning,
        }
