"""Main entry point for llmc: natural language in, one shell command out."""

if __name__ == "__main__" and __package__ is None:
    import sys
    from pathlib import Path

    # Add the project root to the Python path
    project_root = Path(__file__).resolve().parent.parent
    sys.path.insert(0, str(project_root))
    __package__ = "llmc"


import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.prompt import Confirm

from llmc import shell_integration
from llmc.config import (
    LLMCConfig,
    describe_config,
    is_interactive,
    load_configuration,
    validate_api_setup,
)
from llmc.deadline import Deadline
from llmc.errors import ConfigurationError, LLMCError, ProtocolError
from llmc.llm_handler import LLMHandler, Mode
from llmc.logging_utils import configure_logging
from llmc.wizard import interactive_setup

app = typer.Typer(
    name="llmc",
    help="llmc - natural language to shell command",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=False,
)

# stdout carries only the answer; everything else goes to stderr
err_console = Console(stderr=True, highlight=False)


def show_usage():
    """Display usage on stderr."""
    usage_text = """
**Usage**

```bash
llmc <query>               convert natural language to a shell command
llmc --chat <query>        answer a question in plain text
llmc --chat --stderr ...   answer on stderr instead of stdout
llmc --setup               reconfigure API provider/model/key
llmc --install             install Ctrl+E shell integration
llmc --uninstall           remove shell integration and config
llmc --version             show version
```
    """
    err_console.print(Markdown(usage_text))


def fail(message: str):
    """Print one diagnostic line and exit non-zero."""
    err_console.print(f"llmc: {message}", markup=False, soft_wrap=True)
    raise typer.Exit(1)


def version_callback(value: bool):
    """Show version and exit."""
    if value:
        from . import __version__

        typer.echo(f"llmc {__version__}")
        raise typer.Exit()


def setup_callback(value: bool):
    """Run interactive setup wizard and exit."""
    if value:
        try:
            interactive_setup(err_console)
        except ConfigurationError as e:
            fail(str(e))
        err_console.print("Setup complete.")
        raise typer.Exit()


def install_callback(value: bool):
    """Install shell integration and exit."""
    if value:
        shell_integration.install(console=err_console)
        raise typer.Exit()


def uninstall_callback(value: bool):
    """Remove shell integration and exit."""
    if value:
        shell_integration.uninstall(
            confirm=lambda question: Confirm.ask(
                question, console=err_console, default=False
            ),
            console=err_console,
        )
        raise typer.Exit()


def show_config_callback(value: bool):
    """Show current configuration and exit."""
    if value:
        try:
            config = load_configuration()
        except ConfigurationError as e:
            fail(str(e))
        err_console.print("[bold blue]llmc configuration[/bold blue]")
        for line in describe_config(config):
            err_console.print(f"  {line}", markup=False)
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    query: List[str] = typer.Argument(
        None, help="What you want to do, in natural language."
    ),
    chat: bool = typer.Option(
        False, "--chat", "-c", help="Answer in plain text instead of a command"
    ),
    to_stderr: bool = typer.Option(
        False, "--stderr", help="With --chat, write the answer to stderr"
    ),
    model: Optional[str] = typer.Option(
        None, "--model", "-m", help="Override the configured model"
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug logging and tracebacks on stderr",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version information and exit.",
    ),
    setup: Optional[bool] = typer.Option(
        None,
        "--setup",
        callback=setup_callback,
        is_eager=True,
        help="Reconfigure API provider, model and key.",
    ),
    install: Optional[bool] = typer.Option(
        None,
        "--install",
        callback=install_callback,
        is_eager=True,
        help="Install Ctrl+E shell integration.",
    ),
    uninstall: Optional[bool] = typer.Option(
        None,
        "--uninstall",
        callback=uninstall_callback,
        is_eager=True,
        help="Remove shell integration and optionally the config.",
    ),
    show_config: Optional[bool] = typer.Option(
        None,
        "--show-config",
        callback=show_config_callback,
        is_eager=True,
        help="Show current configuration and exit.",
    ),
):
    """Translate a request into a shell command, or answer it with --chat."""
    if not query:
        show_usage()
        raise typer.Exit(1)

    input_text = " ".join(query)
    mode = Mode.CHAT if chat else Mode.COMMAND

    try:
        config = resolve_configuration(debug=debug, model_override=model)
        configure_logging(config.log_level.value)
        # The clock starts once nothing is left waiting on a human
        deadline = Deadline(config.hard_timeout)
        result = asyncio.run(execute_query(input_text, config, mode, deadline))
    except LLMCError as e:
        handle_error(e, debug)
        raise typer.Exit(1)

    display_result(result, to_stderr=chat and to_stderr)


def resolve_configuration(
    debug: bool = False, model_override: Optional[str] = None
) -> LLMCConfig:
    """Environment, then config file, then the setup wizard when interactive."""
    config = load_configuration(debug=debug, model_override=model_override)
    if not config.validate_current_setup() and is_interactive():
        interactive_setup(err_console)
        config = load_configuration(debug=debug, model_override=model_override)
    validate_api_setup(config)
    return config


async def execute_query(
    input_text: str,
    config: LLMCConfig,
    mode: Mode,
    deadline: Optional[Deadline] = None,
) -> str:
    """Run the tool-calling loop under the invocation deadline."""
    deadline = deadline or Deadline(config.hard_timeout)
    handler = LLMHandler(config, mode=mode, deadline=deadline, console=err_console)
    return await handler.run(input_text)


def display_result(result: str, to_stderr: bool = False):
    """Write the answer verbatim, without markup or wrapping."""
    typer.echo(result, err=to_stderr)


def handle_error(error: Exception, debug: bool = False):
    """Print the diagnostic line, plus details when they help."""
    err_console.print(f"llmc: {error}", markup=False, soft_wrap=True)
    if isinstance(error, ProtocolError) and error.raw_body is not None:
        if error.status_code is None or debug:
            err_console.print(
                f"llmc: raw response: {error.raw_body}", markup=False, soft_wrap=True
            )
    if debug:
        err_console.print_exception()


if __name__ == "__main__":
    app()
