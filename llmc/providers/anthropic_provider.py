"""Anthropic messages adapter."""

from typing import Any, Dict, List, Optional

import anthropic
import httpx
from anthropic import AsyncAnthropic
from loguru import logger
from pydantic import BaseModel

from ..config import LLMCConfig
from ..deadline import Deadline
from ..history import AnthropicConversation, Conversation
from ..llm_handler import (
    EmptyResult,
    NormalizedResult,
    TextResult,
    ToolCall,
    ToolCallsResult,
)
from .base import LLMProvider


class ContentBlockBody(BaseModel):
    type: str
    text: Optional[str] = None
    id: Optional[str] = None
    name: Optional[str] = None
    input: Optional[Any] = None


class MessagesBody(BaseModel):
    content: List[ContentBlockBody]
    stop_reason: Optional[str] = None


def normalize_messages(body: MessagesBody) -> NormalizedResult:
    """A tool_use block anywhere in the reply makes it a tool-call round."""
    tool_calls = []
    text_parts = []

    for block in body.content:
        if block.type == "tool_use":
            if block.id is not None and block.name is not None:
                tool_calls.append(
                    ToolCall(
                        name=block.name,
                        arguments=block.input if block.input is not None else {},
                        call_id=block.id,
                    )
                )
        elif block.type == "text" and block.text:
            text = block.text.strip()
            if text:
                text_parts.append(text)

    if tool_calls:
        return ToolCallsResult(tool_calls)
    if text_parts:
        return TextResult("\n".join(text_parts))
    return EmptyResult()


class AnthropicProvider(LLMProvider):
    """Adapter for ``POST {api_base}/v1/messages``."""

    conversation_class = AnthropicConversation

    def __init__(self, config: LLMCConfig, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(config)
        self.client = AsyncAnthropic(
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
        """Generate response using the Anthropic messages API."""
        request_params = {
            "model": self.model,
            "max_tokens": max_tokens,
            "temperature": 0,
            **conversation.request_fields(),
        }
        if tools:
            request_params["tools"] = self._format_tools_for_provider(tools)

        logger.debug(
            "anthropic.request base={} model={}", self.config.api_base, self.model
        )
        try:
            raw = await self.client.messages.with_raw_response.create(
                **request_params, timeout=deadline.http_timeout()
            )
        except anthropic.APIStatusError as e:
            raise self._status_error(e.status_code, e.response.text)
        except anthropic.APIConnectionError as e:
            raise self._connection_error(
                e, deadline, isinstance(e, anthropic.APITimeoutError)
            )

        body = self._parse_body(MessagesBody, raw.http_response.text)
        return normalize_messages(body)

    def _format_tools_for_provider(
        self, tools: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Convert function-calling declarations to Anthropic tool format."""
        anthropic_tools = []

        for tool in tools:
            if tool["type"] == "function":
                func = tool["function"]
                anthropic_tools.append(
                    {
                        "name": func["name"],
                        "description": func["description"],
                        "input_schema": func["parameters"],
                    }
                )

        return anthropic_tools

    async def close(self) -> None:
        await self.client.close()
