"""Tool calling implementations for LLM integration."""

from .base import Tool, get_available_tools, get_tool_executor
from .readonly import ReadOnlyCommandTool
from .sandbox import ALLOWED_COMMANDS, SandboxedCommandSpec, run_sandboxed

__all__ = [
    "Tool",
    "get_tool_executor",
    "get_available_tools",
    "ReadOnlyCommandTool",
    "SandboxedCommandSpec",
    "run_sandboxed",
    "ALLOWED_COMMANDS",
]
