"""Read-only command tool exposed to the model."""

from typing import Any, Dict

from loguru import logger

from ..config import LLMCConfig, secret_free_environment
from ..deadline import Deadline
from .base import Tool
from .sandbox import ALLOWED_COMMANDS, SandboxedCommandSpec, run_sandboxed


class ReadOnlyCommandTool(Tool):
    """Tool for inspecting the local filesystem with allow-listed commands."""

    def get_name(self) -> str:
        return "run_readonly_command"

    def get_description(self) -> str:
        allowed = ", ".join(ALLOWED_COMMANDS)
        return (
            "Execute a read-only command on the local system to inspect files, "
            "directories, or text. Only whitelisted commands are allowed: "
            f"{allowed}."
        )

    def get_parameters(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "command": {
                    "type": "string",
                    "description": 'The command binary to run (e.g. "ls", "grep")',
                },
                "args": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Arguments to pass to the command",
                },
            },
            "required": ["command"],
        }

    def parse_arguments(self, arguments: Any) -> SandboxedCommandSpec:
        return SandboxedCommandSpec.model_validate(arguments)

    async def execute(
        self, params: SandboxedCommandSpec, config: LLMCConfig, deadline: Deadline
    ) -> str:
        """Run the command in the sandbox with the credential withheld."""
        logger.info("tool.run command={}", params.display())
        return await run_sandboxed(
            params,
            deadline,
            max_output_bytes=config.max_output_bytes,
            env=secret_free_environment(config.api_key),
        )
