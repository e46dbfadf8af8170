"""Sandboxed execution of read-only inspection commands.

``run_sandboxed`` never raises for anything the model can cause: policy
denials, spawn failures and timeouts all come back as text that is fed to
the model as the tool result.
"""

import asyncio
import subprocess
from typing import Dict, Iterable, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, Field, field_validator

from ..deadline import Deadline

MAX_OUTPUT_BYTES = 2000
TRUNCATION_MARKER = "...(truncated)"
TIMEOUT_MESSAGE = "Error: timeout reached"
READ_CHUNK_SIZE = 4096

ALLOWED_COMMANDS = (
    "ls",
    "grep",
    "cat",
    "find",
    "head",
    "tail",
    "tree",
    "file",
    "stat",
    "which",
    "wc",
    "du",
)

# Flags that turn an allowed binary into something that runs programs or writes
DANGEROUS_FLAGS: Dict[str, Tuple[str, ...]] = {
    "find": (
        "-exec",
        "-execdir",
        "-ok",
        "-okdir",
        "-delete",
        "-fprint",
        "-fprint0",
        "-fprintf",
        "-fls",
    ),
}


class SandboxedCommandSpec(BaseModel):
    """Arguments of one ``run_readonly_command`` call."""

    command: str = Field(..., description="The command binary to run")
    args: List[str] = Field(default_factory=list, description="Command arguments")

    @field_validator("args", mode="before")
    @classmethod
    def null_args_are_empty(cls, v):
        return [] if v is None else v

    def display(self) -> str:
        return " ".join([self.command, *self.args])


def check_policy(
    spec: SandboxedCommandSpec, allowed_commands: Optional[Iterable[str]] = None
) -> Optional[str]:
    """Return a permission-denied message, or None when the command may run."""
    allowed = ALLOWED_COMMANDS if allowed_commands is None else tuple(allowed_commands)
    if spec.command not in allowed:
        return (
            f"Permission Denied: '{spec.command}' is not in the allowed command list."
        )

    blocked = DANGEROUS_FLAGS.get(spec.command, ())
    for arg in spec.args:
        if arg.lower() in blocked:
            return (
                f"Permission Denied: '{arg}' is not allowed with '{spec.command}'."
            )
    return None


async def _drain(
    stream: Optional[asyncio.StreamReader], limit: Optional[int] = None
) -> Tuple[bytes, bool]:
    """Read ``stream`` to EOF, keeping at most ``limit`` bytes.

    Reading continues past the limit so the child never blocks on a full pipe.
    """
    if stream is None:
        return b"", False

    kept = bytearray()
    truncated = False
    while True:
        chunk = await stream.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        if limit is None:
            kept.extend(chunk)
            continue
        room = limit - len(kept)
        if len(chunk) > room:
            truncated = True
        if room > 0:
            kept.extend(chunk[:room])
    return bytes(kept), truncated


def _format_output(
    stdout: bytes, truncated: bool, stderr: bytes, returncode: int
) -> str:
    output = stdout.decode("utf-8", errors="replace")
    if truncated:
        output += TRUNCATION_MARKER
    if returncode != 0:
        output += f"\n[exit {returncode}] {stderr.decode('utf-8', errors='replace')}"
    return output


async def run_sandboxed(
    spec: SandboxedCommandSpec,
    deadline: Deadline,
    max_output_bytes: int = MAX_OUTPUT_BYTES,
    env: Optional[Dict[str, str]] = None,
    allowed_commands: Optional[Iterable[str]] = None,
) -> str:
    """Run one allow-listed command and return its captured output as text.

    Args:
        spec: Command and arguments requested by the model
        deadline: Shared invocation deadline; the wait is bounded by it
        max_output_bytes: Captured stdout budget
        env: Environment for the child, already stripped of credentials
        allowed_commands: Override of the allow-list

    Returns:
        stdout (possibly truncated), with stderr and the exit code appended
        on failure, or an error string
    """
    denied = check_policy(spec, allowed_commands)
    if denied:
        logger.debug("sandbox.denied command={} args={}", spec.command, spec.args)
        return denied

    if deadline.expired():
        return TIMEOUT_MESSAGE

    try:
        proc = await asyncio.create_subprocess_exec(
            spec.command,
            *spec.args,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=env,
        )
    except OSError as e:
        return f"Error: {e}"

    logger.debug("sandbox.spawned pid={} command={}", proc.pid, spec.display())

    readers = asyncio.gather(
        _drain(proc.stdout, max_output_bytes),
        _drain(proc.stderr),
    )

    try:
        returncode = await asyncio.wait_for(proc.wait(), timeout=deadline.remaining())
    except asyncio.TimeoutError:
        logger.debug("sandbox.timeout pid={}", proc.pid)
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        await proc.wait()
        await readers
        return TIMEOUT_MESSAGE

    (stdout, truncated), (stderr, _) = await readers
    logger.debug("sandbox.exited pid={} returncode={}", proc.pid, returncode)
    return _format_output(stdout, truncated, stderr, returncode)
