"""Prompt templates for the classifiers and the answering model."""

from models.date_context import DateContext

DECISION_FORMAT = (
    "Respond with ONLY a JSON object, no markdown and no extra text, in exactly this shape:\n"
    '{"needsSearch": true or false, "searchQuery": "keywords to search for, or empty string", '
    '"reasoning": "one short sentence"}'
)


def build_search_need_prompt(question: str, date_context: DateContext) -> str:
    return f"""You decide whether a user's question needs a web search before it can be answered well.

{date_context.describe()}
Interpret relative time expressions ("today", "now", "recent", "latest", "last week", "this year") against this date.

A search IS needed when the answer depends on information that changes over time or appeared recently:
current events and news, prices, exchange rates, stock quotes, weather, sports results, schedules,
release dates, who currently holds a role, or anything about {date_context.current_year} or {date_context.previous_year}.

A search is NOT needed for general or timeless knowledge: math, definitions, established facts and history,
science, how-to explanations, programming help, writing or brainstorming.

When a search is needed, write a concise keyword query and include the year when it matters.

Question: {question}

{DECISION_FORMAT}"""


def build_adequacy_prompt(question: str, draft_answer: str, date_context: DateContext) -> str:
    return f"""You review a draft answer that was written WITHOUT access to the web, and decide whether it is adequate
or whether a web search is needed to answer the question properly.

{date_context.describe()}

The draft is ADEQUATE when it fully answers the question from general or timeless knowledge and does not hedge
about missing current information.

The draft is INADEQUATE (needsSearch true) when any of these hold:
- it expresses uncertainty about whether its information is current or up to date
- it says it lacks real-time data, internet access, or knowledge past a training cutoff
- the question clearly asks for current information (news, prices, schedules, recent events, anything dated
  {date_context.current_year}) and the draft does not actually supply it

When inadequate, write the keyword query that would find the missing information.

Question: {question}

Draft answer:
\"\"\"
{draft_answer}
\"\"\"

{DECISION_FORMAT}"""


def build_answer_system_prompt(date_context: DateContext, evidence: str = "") -> str:
    """System message for the user-facing answer, optionally carrying search evidence."""
    parts = [
        "You are a helpful assistant.",
        f"{date_context.describe()} Use this date for any time-relative reasoning.",
    ]
    if evidence:
        parts.append("")
        parts.append(evidence)
    return "\n".join(parts)
