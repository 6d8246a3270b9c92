"""Append-only conversation history for one agent session."""

from typing import Any, Iterator

from todo_agent.llm.models import ConversationTurn


class ConversationHistory:
    """Ordered record of the turns exchanged in one session.

    Turns are only ever appended, in the order the loop produces them.
    """

    def __init__(self):
        self._turns: list[ConversationTurn] = []

    def append_user(self, content: str) -> ConversationTurn:
        return self._append(ConversationTurn.user(content))

    def append_model(self, content: str) -> ConversationTurn:
        return self._append(ConversationTurn.model(content))

    def append_tool(self, name: str, result: Any) -> ConversationTurn:
        return self._append(ConversationTurn.tool(name, result))

    def _append(self, turn: ConversationTurn) -> ConversationTurn:
        self._turns.append(turn)
        return turn

    @property
    def turns(self) -> tuple[ConversationTurn, ...]:
        """Snapshot of the turns so far, oldest first."""
        return tuple(self._turns)

    @property
    def roles(self) -> list[str]:
        return [turn.role for turn in self._turns]

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[ConversationTurn]:
        return iter(tuple(self._turns))

    def __repr__(self) -> str:
        return f"<ConversationHistory: {len(self._turns)} turns>"
