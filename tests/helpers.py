"""Canned API bodies and a recording HTTP transport for adapter tests."""

import json
from typing import Any, Dict, List

import httpx

from llmc.history import OpenAIConversation
from llmc.llm_handler import EmptyResult


class RecordingTransport:
    """httpx handler that replays canned responses and records requests."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def bodies(self) -> List[Dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def openai_body(content=None, tool_calls=None) -> Dict[str, Any]:
    """Chat-completions response body with a single choice."""
    message: Dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": message, "finish_reason": "stop"}],
    }


def openai_tool_call(call_id: str, arguments: str, name: str = "run_readonly_command"):
    return {
        "id": call_id,
        "type": "function",
        "function": {"name": name, "arguments": arguments},
    }


def anthropic_body(*blocks) -> Dict[str, Any]:
    return {
        "id": "msg_test",
        "type": "message",
        "role": "assistant",
        "content": list(blocks),
        "stop_reason": "end_turn",
    }


class ScriptedProvider:
    """Stand-in adapter that replays results and snapshots each request."""

    conversation_class = OpenAIConversation

    def __init__(self, results):
        self.results = list(results)
        self.snapshots = []
        self.closed = False

    def new_conversation(self, system_prompt, user_query):
        self.conversation = self.conversation_class(system_prompt, user_query)
        return self.conversation

    async def generate_response(self, conversation, tools, deadline, max_tokens=4096):
        self.snapshots.append(conversation.turns)
        if not self.results:
            return EmptyResult()
        return self.results.pop(0)

    async def close(self):
        self.closed = True
