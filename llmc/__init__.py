"""llmc - natural language to shell command.

A single-shot CLI that sends a request to an OpenAI-style or Anthropic-style
API, lets the model inspect the local filesystem through a sandbox of
read-only commands, and prints exactly one shell command (or, with
``--chat``, a plain-text answer).
"""

from .config import BackendKind, LLMCConfig
from .deadline import Deadline
from .history import AnthropicConversation, OpenAIConversation
from .llm_handler import LLMHandler, Mode
from .main import app

__version__ = "0.1.0"

__all__ = [
    "app",
    "BackendKind",
    "Deadline",
    "LLMCConfig",
    "LLMHandler",
    "Mode",
    "OpenAIConversation",
    "AnthropicConversation",
]
