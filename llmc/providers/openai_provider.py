"""OpenAI-style chat-completions adapter.

Also used for every OpenAI-compatible endpoint (Gemini's compatibility
layer, local servers), since only the base URL differs.
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import openai
from loguru import logger
from openai import AsyncOpenAI
from pydantic import BaseModel

from ..config import LLMCConfig
from ..deadline import Deadline
from ..history import Conversation, OpenAIConversation
from ..llm_handler import (
    EmptyResult,
    NormalizedResult,
    TextResult,
    ToolCall,
    ToolCallsResult,
)
from .base import LLMProvider


class FunctionCallBody(BaseModel):
    name: str
    arguments: str


class ToolCallBody(BaseModel):
    id: str
    function: FunctionCallBody


class MessageBody(BaseModel):
    content: Optional[str] = None
    tool_calls: Optional[List[ToolCallBody]] = None


class ChoiceBody(BaseModel):
    message: MessageBody
    finish_reason: Optional[str] = None


class ChatCompletionBody(BaseModel):
    choices: List[ChoiceBody]


def decode_arguments(raw: str) -> Any:
    """Parse tool-call arguments; malformed JSON degrades to no arguments."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.debug("tool_call.malformed_arguments raw={!r}", raw)
        return {}


def normalize_chat_completion(body: ChatCompletionBody) -> NormalizedResult:
    """Tool calls on the first choice win over any text next to them."""
    if not body.choices:
        return EmptyResult()

    message = body.choices[0].message
    if message.tool_calls:
        return ToolCallsResult(
            [
                ToolCall(
                    name=tool_call.function.name,
                    arguments=decode_arguments(tool_call.function.arguments),
                    call_id=tool_call.id,
                )
                for tool_call in message.tool_calls
            ]
        )

    content = (message.content or "").strip()
    if content:
        return TextResult(content)
    return EmptyResult()


class OpenAIProvider(LLMProvider):
    """Adapter for ``POST {api_base}/chat/completions``."""

    conversation_class = OpenAIConversation

    def __init__(self, config: LLMCConfig, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(config)
        self.client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.api_base,
            max_retries=0,
            http_client=http_client,
        )

    async def generate_response(
        self,
        conversation: Conversation,
        tools: List[Dict[str, Any]],
        deadline: Deadline,
        max_tokens: int = 4096,
    ) -> NormalizedResult:
        """Generate a response; this protocol takes no token budget here."""
        request_params = {
            "model": self.model,
            "temperature": 0,
            **conversation.request_fields(),
        }
        if tools:
            request_params["tools"] = self._format_tools_for_provider(tools)

        logger.debug("openai.request base={} model={}", self.config.api_base, self.model)
        try:
            raw = await self.client.chat.completions.with_raw_response.create(
                **request_params, timeout=deadline.http_timeout()
            )
        except openai.APIStatusError as e:
            raise self._status_error(e.status_code, e.response.text)
        except openai.APIConnectionError as e:
            raise self._connection_error(
                e, deadline, isinstance(e, openai.APITimeoutError)
            )

        body = self._parse_body(ChatCompletionBody, raw.http_response.text)
        return normalize_chat_completion(body)

    async def close(self) -> None:
        await self.client.close()
