"""Append-only conversation encodings, one per wire protocol.

A conversation is seeded with the system prompt and the user's query, then
grows by one assistant turn carrying tool calls and the matching tool
results per round. Turns are never edited or reordered once added; callers
only ever see copies.
"""

import copy
import json
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Sequence, Tuple

if TYPE_CHECKING:
    from .llm_handler import ToolCall

ToolResult = Tuple["ToolCall", str]


class Conversation(ABC):
    """Ordered turns of one invocation in a backend-specific encoding."""

    def __init__(self, system_prompt: str, user_query: str):
        self.system_prompt = system_prompt
        self._turns: List[Dict[str, Any]] = []
        self._seed(user_query)

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> List[Dict[str, Any]]:
        """Deep copy of the encoded turns."""
        return copy.deepcopy(self._turns)

    def _append(self, turn: Dict[str, Any]) -> None:
        self._turns.append(copy.deepcopy(turn))

    @abstractmethod
    def _seed(self, user_query: str) -> None:
        """Add the opening turns."""

    @abstractmethod
    def add_tool_calls(self, calls: Sequence["ToolCall"]) -> None:
        """Add the assistant turn that requested ``calls``."""

    @abstractmethod
    def add_tool_results(self, results: Sequence[ToolResult]) -> None:
        """Add the results of one round, in call order."""

    @abstractmethod
    def request_fields(self) -> Dict[str, Any]:
        """Request body fields that carry the conversation."""


class OpenAIConversation(Conversation):
    """Chat-completions encoding: system prompt inline, one turn per tool result."""

    def _seed(self, user_query: str) -> None:
        self._append({"role": "system", "content": self.system_prompt})
        self._append({"role": "user", "content": user_query})

    def add_tool_calls(self, calls: Sequence["ToolCall"]) -> None:
        self._append(
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": call.call_id,
                        "type": "function",
                        "function": {
                            "name": call.name,
                            "arguments": json.dumps(call.arguments),
                        },
                    }
                    for call in calls
                ],
            }
        )

    def add_tool_results(self, results: Sequence[ToolResult]) -> None:
        for call, output in results:
            self._append(
                {"role": "tool", "tool_call_id": call.call_id, "content": output}
            )

    def request_fields(self) -> Dict[str, Any]:
        return {"messages": self.turns}


class AnthropicConversation(Conversation):
    """Messages encoding: system prompt out of band, results batched in one turn."""

    def _seed(self, user_query: str) -> None:
        self._append({"role": "user", "content": user_query})

    def add_tool_calls(self, calls: Sequence["ToolCall"]) -> None:
        self._append(
            {
                "role": "assistant",
                "content": [
                    {
                        "type": "tool_use",
                        "id": call.call_id,
                        "name": call.name,
                        "input": call.arguments,
                    }
                    for call in calls
                ],
            }
        )

    def add_tool_results(self, results: Sequence[ToolResult]) -> None:
        self._append(
            {
                "role": "user",
                "content": [
                    {
                        "type": "tool_result",
                        "tool_use_id": call.call_id,
                        "content": output,
                    }
                    for call, output in results
                ],
            }
        )

    def request_fields(self) -> Dict[str, Any]:
        return {"system": self.system_prompt, "messages": self.turns}
