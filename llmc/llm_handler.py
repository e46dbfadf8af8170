"""LLM handler: the tool-calling loop that turns a request into one answer."""

import contextlib
import os
import platform
from enum import Enum
from typing import Any, List, Optional, Union

from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .config import BackendKind, LLMCConfig
from .deadline import Deadline
from .errors import (
    DeadlineExceeded,
    EmptyResponseError,
    GenerationRefused,
    GenerationRejected,
    RoundLimitExceeded,
)
from .history import Conversation

REFUSAL_MARKER = "NOCOMMAND:"
COMMAND_MAX_TOKENS = 1024
CHAT_MAX_TOKENS = 4096


class Mode(str, Enum):
    """What the final answer should be."""

    COMMAND = "command"
    CHAT = "chat"


class ToolCall:
    """Represents a tool call request from the LLM."""

    def __init__(self, name: str, arguments: Any, call_id: str):
        self.name = name
        self.arguments = arguments
        self.call_id = call_id

    def __eq__(self, other):
        if not isinstance(other, ToolCall):
            return NotImplemented
        return (self.name, self.arguments, self.call_id) == (
            other.name,
            other.arguments,
            other.call_id,
        )

    def __repr__(self):
        return (
            f"ToolCall(name='{self.name}', arguments={self.arguments}, "
            f"call_id='{self.call_id}')"
        )


class TextResult:
    """The model answered with text."""

    def __init__(self, text: str):
        self.text = text

    def __eq__(self, other):
        return isinstance(other, TextResult) and self.text == other.text

    def __repr__(self):
        return f"TextResult({self.text!r})"


class ToolCallsResult:
    """The model asked for one or more tool calls."""

    def __init__(self, calls: List[ToolCall]):
        self.calls = calls

    def __eq__(self, other):
        return isinstance(other, ToolCallsResult) and self.calls == other.calls

    def __repr__(self):
        return f"ToolCallsResult({self.calls!r})"


class EmptyResult:
    """The model produced nothing usable."""

    def __eq__(self, other):
        return isinstance(other, EmptyResult)

    def __repr__(self):
        return "EmptyResult()"


NormalizedResult = Union[TextResult, ToolCallsResult, EmptyResult]


def command_system_prompt() -> str:
    """System prompt for command generation, with the local environment."""
    return (
        "You are a shell command generator. The user describes what they want "
        "to do in natural language. Your job is to produce the EXACT shell "
        "command they need.\n\n"
        f"{_environment_block()}\n\n"
        "You may call the `run_readonly_command` tool to inspect the local "
        "filesystem before answering (e.g. list files, read configs). Only use "
        "it when the user's request requires local context.\n\n"
        "Rules:\n"
        "1. Your final answer MUST be a single shell command (or pipeline), "
        "nothing else.\n"
        "2. Do NOT wrap the command in markdown code fences or quotes.\n"
        "3. Do NOT include any explanation, commentary, or surrounding text.\n"
        "4. If the request cannot be turned into a command, answer exactly "
        f'"{REFUSAL_MARKER} <short reason>".'
    )


def chat_system_prompt() -> str:
    """System prompt for free-form answers."""
    return (
        "You are a concise command-line assistant. Answer the user's question "
        "in plain text suitable for a terminal, without markdown formatting.\n\n"
        f"{_environment_block()}\n\n"
        "You may call the `run_readonly_command` tool to inspect the local "
        "filesystem when the question depends on local files."
    )


def _environment_block() -> str:
    try:
        cwd = os.getcwd()
    except OSError:
        cwd = "."
    shell = os.environ.get("SHELL", "bash")
    return (
        "Environment:\n"
        f"- OS: {platform.system().lower()}\n"
        f"- Shell: {shell}\n"
        f"- CWD: {cwd}"
    )


def looks_like_prose(text: str) -> bool:
    """Multi-line text without shell glue is an explanation, not a command."""
    lines = text.splitlines()
    if len(lines) <= 3:
        return False
    if any(ch in text for ch in "|&;"):
        return False
    return not text.rstrip().endswith("\\")


def postprocess_command(text: str) -> str:
    """Apply command-mode checks to the model's final text."""
    if text.startswith(REFUSAL_MARKER):
        reason = text[len(REFUSAL_MARKER) :].strip() or "model refused the request"
        raise GenerationRefused(reason)
    if looks_like_prose(text):
        raise GenerationRejected(
            "model answered with an explanation instead of a command"
        )
    return text


class LLMHandler:
    """Drives one invocation: model round trips and sandboxed tool calls."""

    def __init__(
        self,
        config: LLMCConfig,
        mode: Mode = Mode.COMMAND,
        deadline: Optional[Deadline] = None,
        provider=None,
        console: Optional[Console] = None,
        show_progress: Optional[bool] = None,
    ):
        self.config = config
        self.mode = mode
        self.deadline = deadline or Deadline(config.hard_timeout)
        self.provider = provider or self._get_provider()
        self.console = console or Console(stderr=True)
        self.show_progress = (
            self.console.is_terminal if show_progress is None else show_progress
        )
        self.max_tokens = (
            COMMAND_MAX_TOKENS if mode == Mode.COMMAND else CHAT_MAX_TOKENS
        )

    def _get_provider(self):
        """Get the adapter for the configured backend."""
        from .providers import AnthropicProvider, OpenAIProvider

        if self.config.backend == BackendKind.ANTHROPIC:
            return AnthropicProvider(self.config)
        return OpenAIProvider(self.config)

    def _get_system_prompt(self) -> str:
        if self.mode == Mode.COMMAND:
            return command_system_prompt()
        return chat_system_prompt()

    def _progress(self, label: str):
        """Spinner on stderr around a blocking step, stopped on exit."""
        if not self.show_progress:
            return contextlib.nullcontext()
        return self.console.status(f"[dim]{escape(label)}[/dim]", spinner="dots")

    async def run(self, query: str) -> str:
        """Run the loop until the model answers, then return the final text.

        Raises:
            LLMCError: on every fatal condition
        """
        conversation = self.provider.new_conversation(self._get_system_prompt(), query)
        try:
            return await self._loop(conversation)
        finally:
            await self.provider.close()

    async def _loop(self, conversation: Conversation) -> str:
        tools = self._get_available_tools()

        for round_no in range(1, self.config.max_tool_rounds + 1):
            if self.deadline.expired():
                raise DeadlineExceeded(self.deadline.describe())

            logger.debug("round.start round={} turns={}", round_no, len(conversation))
            with self._progress("Thinking..."):
                result = await self.provider.generate_response(
                    conversation, tools, self.deadline, max_tokens=self.max_tokens
                )

            if isinstance(result, TextResult):
                return self._finish(result.text)

            if isinstance(result, EmptyResult):
                raise EmptyResponseError("model returned empty response")

            conversation.add_tool_calls(result.calls)
            results = []
            for tool_call in result.calls:
                output = await self._run_tool_call(tool_call)
                results.append((tool_call, output))
            conversation.add_tool_results(results)

        raise RoundLimitExceeded(
            f"max tool rounds ({self.config.max_tool_rounds}) exceeded"
        )

    def _finish(self, text: str) -> str:
        if self.mode == Mode.COMMAND:
            return postprocess_command(text)
        return text

    def _get_available_tools(self) -> List[dict]:
        """Function-calling declarations of every tool."""
        from .tools import get_available_tools

        return [tool.declaration() for tool in get_available_tools().values()]

    async def _run_tool_call(self, tool_call: ToolCall) -> str:
        """Resolve one tool call to its result text. Never raises."""
        from .tools import get_tool_executor

        executor = get_tool_executor(tool_call.name)
        if executor is None:
            return f"Unknown tool: {tool_call.name}"

        try:
            params = executor.parse_arguments(tool_call.arguments)
        except ValidationError as e:
            return f"Error parsing arguments: {_summarize_validation_error(e)}"

        with self._progress(f"Running: {params.display()}"):
            return await executor.execute(params, self.config, self.deadline)


def _summarize_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        parts.append(f"{location}: {item['msg']}" if location else item["msg"])
    return "; ".join(parts)
