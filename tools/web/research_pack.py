"""Format search results for injection into the answering prompt."""

from .contracts import SearchResult


def format_search_results(results: list[SearchResult]) -> str:
    """
    Render results as a numbered evidence block.

    Each entry carries title, link and snippet so the model can cite it as [n].
    """
    lines = []
    for idx, result in enumerate(results, start=1):
        lines.append(f"[{idx}] {result.title}")
        lines.append(f"Link: {result.link}")
        if result.snippet:
            lines.append(f"Snippet: {result.snippet}")
        lines.append("")
    return "\n".join(lines).rstrip()


def build_evidence_section(results: list[SearchResult]) -> str:
    """Evidence block plus citation instructions; empty when there is nothing to cite."""
    if not results:
        return ""
    return "\n".join(
        [
            "Web search results (most relevant first):",
            "",
            format_search_results(results),
            "",
            "Use these results to answer. Cite the sources you rely on as [1], [2], etc., "
            "and include the link of each cited source. If the results do not contain the answer, say so "
            "instead of guessing. Do not claim you lack internet access; the results above were retrieved for you.",
        ]
    )
