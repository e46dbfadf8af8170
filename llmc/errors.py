"""Fatal error types for llmc.

Every exception here ends the invocation: the CLI prints a single
``llmc: <message>`` line on stderr and exits with status 1. Recoverable
problems (bad tool arguments, sandbox denials) never raise; they are turned
into tool-result text and handed back to the model.
"""

from typing import Optional


class LLMCError(Exception):
    """Base exception for llmc."""


class ConfigurationError(LLMCError):
    """Raised when the API key, base URL or model cannot be resolved."""


class TransportError(LLMCError):
    """Raised when the HTTP exchange itself fails (DNS, TLS, connect, read)."""


class ProtocolError(LLMCError):
    """Raised on a non-2xx status or a response body that does not parse."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        raw_body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.raw_body = raw_body


class DeadlineExceeded(LLMCError):
    """Raised when the global deadline has passed at a checkpoint."""


class RoundLimitExceeded(LLMCError):
    """Raised when the model keeps requesting tools past the round cap."""


class EmptyResponseError(LLMCError):
    """Raised when the model returns neither text nor tool calls."""


class GenerationRefused(LLMCError):
    """Raised when the model answers with the refusal marker in command mode."""


class GenerationRejected(LLMCError):
    """Raised when command-mode output looks like prose, not a command."""
