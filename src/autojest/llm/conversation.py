"""Append-only conversation history for one test generation session."""

from __future__ import annotations

from dataclasses import dataclass, field

from autojest.llm.engine import LLMMessage

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


@dataclass
class Conversation:
    """Ordered user/assistant turns for a single source file.

    The first ``seed_size`` messages are the opening instruction (or the
    existing-test repair request); everything after them alternates between
    an assistant draft and a user feedback message.
    """

    messages: list[LLMMessage] = field(default_factory=list)
    seed_size: int = 0

    def seed(self, *contents: str) -> None:
        """Append the opening user messages. Only valid on an empty conversation."""
        if self.messages:
            raise ValueError("Conversation already started")
        for content in contents:
            self.messages.append(LLMMessage(role=ROLE_USER, content=content))
        self.seed_size = len(self.messages)

    def add_user(self, content: str) -> None:
        self.messages.append(LLMMessage(role=ROLE_USER, content=content))

    def add_assistant(self, content: str) -> None:
        self.messages.append(LLMMessage(role=ROLE_ASSISTANT, content=content))

    def window(self, max_exchanges: int = 0) -> list[LLMMessage]:
        """Return the messages to send with the next request.

        With ``max_exchanges > 0`` only the seed and the last
        ``max_exchanges`` draft/feedback pairs are kept. The stored history
        itself is never trimmed.
        """
        if max_exchanges <= 0:
            return list(self.messages)
        seed = self.messages[: self.seed_size]
        tail = self.messages[self.seed_size :]
        return seed + tail[-2 * max_exchanges :]

    @property
    def contents(self) -> list[str]:
        """Message texts in order, for inspection."""
        return [m.content for m in self.messages]

    def __len__(self) -> int:
        return len(self.messages)
