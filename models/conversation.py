"""Caller-supplied conversation history."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

Role = Literal["system", "user", "assistant"]
VALID_ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ConversationTurn:
    role: Role
    content: str

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(f"Unsupported role '{self.role}'. Must be one of: {', '.join(VALID_ROLES)}")

    def to_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def turns_from_dicts(items: Iterable[Mapping[str, str]] | None) -> list[ConversationTurn]:
    """Convert `{"role", "content"}` mappings (HTTP payloads, CLI history) into turns."""
    return [ConversationTurn(role=item["role"], content=item.get("content") or "") for item in items or []]
