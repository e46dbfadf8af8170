"""Base adapter interface and the error mapping shared by both wire protocols."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..config import LLMCConfig
from ..deadline import Deadline
from ..errors import DeadlineExceeded, ProtocolError, TransportError
from ..history import Conversation
from ..llm_handler import NormalizedResult

RAW_BODY_EXCERPT = 500

BodyT = TypeVar("BodyT", bound=BaseModel)


def status_hint(status_code: int) -> str:
    """Short human hint for an HTTP error status."""
    if status_code == 401:
        return "invalid API key"
    if status_code == 403:
        return "permission denied for this API key"
    if status_code == 404:
        return "model or endpoint not found, check the model name and API base"
    if status_code == 429:
        return "rate limit exceeded"
    if status_code >= 500:
        return "server error at the API provider"
    return "request rejected"


class LLMProvider(ABC):
    """Abstract base class for both backend adapters.

    An adapter owns three backend-specific pieces: the conversation encoding,
    the tool declaration shape, and the request/response exchange.
    """

    conversation_class: Type[Conversation]

    def __init__(self, config: LLMCConfig):
        self.config = config
        self.model = config.model

    def new_conversation(self, system_prompt: str, user_query: str) -> Conversation:
        """Seed a conversation in this backend's encoding."""
        return self.conversation_class(system_prompt, user_query)

    @abstractmethod
    async def generate_response(
        self,
        conversation: Conversation,
        tools: List[Dict[str, Any]],
        deadline: Deadline,
        max_tokens: int = 4096,
    ) -> NormalizedResult:
        """Run one HTTP exchange and normalize the reply.

        Args:
            conversation: Every turn so far
            tools: Function-calling declarations of the available tools
            deadline: Shared invocation deadline bounding the request
            max_tokens: Output budget, for protocols that take one

        Returns:
            TextResult, ToolCallsResult or EmptyResult

        Raises:
            TransportError, ProtocolError, DeadlineExceeded
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP client."""
        pass

    def _format_tools_for_provider(self, tools: List[Dict[str, Any]]) -> Any:
        """Format tools for the specific provider. Override as needed."""
        return tools

    def _parse_body(self, body_model: Type[BodyT], text: str) -> BodyT:
        """Validate a raw response body against the expected schema."""
        try:
            return body_model.model_validate_json(text)
        except ValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            detail = f"{location}: {first['msg']}" if location else first["msg"]
            raise ProtocolError(
                f"failed to parse API response: {detail}",
                raw_body=text[:RAW_BODY_EXCERPT],
            )

    def _status_error(self, status_code: int, body: str) -> ProtocolError:
        return ProtocolError(
            f"API request failed (HTTP {status_code}): {status_hint(status_code)}",
            status_code=status_code,
            raw_body=body[:RAW_BODY_EXCERPT],
        )

    def _connection_error(
        self, error: Exception, deadline: Deadline, timed_out: bool
    ) -> Exception:
        if timed_out and deadline.expired():
            return DeadlineExceeded(deadline.describe())
        return TransportError(f"API request failed: {error}")
