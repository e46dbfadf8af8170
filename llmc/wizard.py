"""Interactive first-run setup: pick a provider, a model and enter a key.

All prompts go to stderr; stdout is reserved for the generated command.
"""

from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.prompt import Prompt

from .config import LLMCConfig, save_config
from .errors import ConfigurationError

# (label, api_base, [(model, note), ...])
PRESETS: List[Tuple[str, str, List[Tuple[str, str]]]] = [
    (
        "ChatGPT (OpenAI)",
        "https://api.openai.com/v1",
        [
            ("gpt-5-mini", "recommended"),
            ("gpt-5.2", "high performance"),
            ("gpt-4.1-mini", "legacy, cheap"),
        ],
    ),
    (
        "Claude (Anthropic)",
        "https://api.anthropic.com",
        [
            ("claude-haiku-4-5-20251001", "recommended"),
            ("claude-sonnet-4-5-20250929", "balanced"),
            ("claude-opus-4-5-20251101", "high performance"),
        ],
    ),
    (
        "Gemini (Google)",
        "https://generativelanguage.googleapis.com/v1beta/openai",
        [
            ("gemini-2.5-flash-lite", "recommended"),
            ("gemini-2.5-flash", "balanced"),
            ("gemini-2.5-pro", "high performance"),
        ],
    ),
]


def _ask(console: Console, label: str) -> str:
    return Prompt.ask(label, console=console, default="", show_default=False).strip()


def _require(value: str, what: str) -> str:
    if not value:
        raise ConfigurationError(f"{what} is empty.")
    return value


def _choose_model(console: Console, models: List[Tuple[str, str]]) -> str:
    console.print("Select model:")
    for index, (name, note) in enumerate(models, start=1):
        console.print(f"  {index}) {name} ({note})")
    manual = len(models) + 1
    console.print(f"  {manual}) Enter manually")
    console.print()

    choice = _ask(console, f"Choice [1-{manual}]")
    try:
        index = int(choice)
    except ValueError:
        index = 1

    if 1 <= index <= len(models):
        return models[index - 1][0]
    console.print()
    return _require(_ask(console, "Model name"), "model name")


def interactive_setup(
    console: Optional[Console] = None, config_path: Optional[Path] = None
) -> LLMCConfig:
    """Prompt for provider, model and key, then persist them.

    Raises:
        ConfigurationError: when a required answer is left empty
    """
    console = console or Console(stderr=True)

    console.print("[bold]llmc: initial setup[/bold]")
    console.print()
    console.print("Select API provider:")
    for index, (label, _, _) in enumerate(PRESETS, start=1):
        console.print(f"  {index}) {label}")
    console.print(f"  {len(PRESETS) + 1}) Other (manual input)")
    console.print()

    choice = _ask(console, f"Choice [1-{len(PRESETS) + 1}]")
    console.print()

    preset = None
    if choice.isdigit() and 1 <= int(choice) <= len(PRESETS):
        preset = PRESETS[int(choice) - 1]

    if preset is not None:
        _, api_base, models = preset
        model = _choose_model(console, models)
    else:
        api_base = _require(_ask(console, "API Base URL"), "API base URL")
        console.print()
        model = _require(_ask(console, "Model name"), "model name")

    console.print()
    api_key = _require(_ask(console, "API Key"), "API key")

    config = LLMCConfig(api_key=api_key, api_base=api_base, model=model)
    path = save_config(config, config_path)
    console.print(f"llmc: config saved -> {path}")
    console.print()
    return config
