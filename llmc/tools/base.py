"""Base tool interface for LLM tool calling."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..config import LLMCConfig
from ..deadline import Deadline


class Tool(ABC):
    """Abstract base class for all LLM tools."""

    @abstractmethod
    def get_name(self) -> str:
        """Get the tool name."""
        pass

    @abstractmethod
    def get_description(self) -> str:
        """Get the tool description."""
        pass

    @abstractmethod
    def get_parameters(self) -> Dict[str, Any]:
        """JSON schema of the tool arguments."""
        pass

    @abstractmethod
    def parse_arguments(self, arguments: Any) -> BaseModel:
        """Validate raw model-supplied arguments.

        Raises:
            pydantic.ValidationError: when the arguments do not fit the schema
        """
        pass

    @abstractmethod
    async def execute(
        self, params: BaseModel, config: LLMCConfig, deadline: Deadline
    ) -> str:
        """Execute the tool with validated arguments.

        Args:
            params: Arguments returned by ``parse_arguments``
            config: llmc configuration object
            deadline: Shared invocation deadline

        Returns:
            String result of the tool execution
        """
        pass

    def declaration(self) -> Dict[str, Any]:
        """Function-calling declaration of this tool."""
        return {
            "type": "function",
            "function": {
                "name": self.get_name(),
                "description": self.get_description(),
                "parameters": self.get_parameters(),
            },
        }


def get_available_tools() -> Dict[str, Tool]:
    """All tools the model may call, keyed by name."""
    from .readonly import ReadOnlyCommandTool

    tools = [ReadOnlyCommandTool()]
    return {tool.get_name(): tool for tool in tools}


def get_tool_executor(tool_name: str) -> Optional[Tool]:
    """Get tool executor by name."""
    return get_available_tools().get(tool_name)
