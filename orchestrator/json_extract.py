"""
Tolerant decoding of classifier replies.

Models asked for "only a JSON object" still wrap it in prose or code fences.
We take the substring from the first '{' to the last '}' and decode that.
The outcome is a value, never an exception.
"""

import json
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DecodeResult:
    ok: bool
    value: dict[str, Any] | None = None
    error: str = ""

    @classmethod
    def failure(cls, error: str) -> "DecodeResult":
        return cls(ok=False, value=None, error=error)


def extract_json_object(text: str | None) -> DecodeResult:
    """
    Decode the outermost-looking JSON object embedded in `text`.

    Returns:
        DecodeResult with ok=True and the decoded dict, or ok=False and a reason
    """
    if not text or not text.strip():
        return DecodeResult.failure("empty response")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return DecodeResult.failure("no JSON object found in response")

    candidate = text[start : end + 1]
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as e:
        return DecodeResult.failure(f"invalid JSON: {e.msg} at position {e.pos}")

    if not isinstance(value, dict):
        return DecodeResult.failure(f"expected a JSON object, got {type(value).__name__}")
    return DecodeResult(ok=True, value=value)


def coerce_bool(value: Any) -> bool | None:
    """Interpret booleans the way models tend to write them; None when unrecognized."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    return None
