"""Configuration management for llmc with environment, file and default sources."""

import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import toml
from pydantic import BaseModel, Field, field_validator

from .deadline import HARD_TIMEOUT
from .errors import ConfigurationError

DEFAULT_API_BASE = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"

# Environment overrides, highest priority after CLI flags
ENV_API_KEY = "LLM_API_KEY"
ENV_API_BASE = "LLM_API_BASE"
ENV_MODEL = "LLM_MODEL"
ENV_LOG_LEVEL = "LLMC_LOG_LEVEL"

# Variables holding provider credentials; never passed to sandboxed commands
SECRET_ENV_VARS = (
    ENV_API_KEY,
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
)


class LogLevel(str, Enum):
    """Available logging levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class BackendKind(str, Enum):
    """Wire protocol spoken by the configured API base."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


def detect_backend(api_base: str) -> BackendKind:
    """Pick the wire protocol from the API base URL."""
    if "anthropic.com" in api_base:
        return BackendKind.ANTHROPIC
    return BackendKind.OPENAI


class LLMCConfig(BaseModel):
    """Resolved configuration for one invocation."""

    # API configuration
    api_key: Optional[str] = Field(default=None, description="API credential")
    api_base: str = Field(default=DEFAULT_API_BASE, description="API base URL")
    model: str = Field(default=DEFAULT_MODEL, description="Model identifier")

    # Limits
    hard_timeout: float = Field(
        default=HARD_TIMEOUT, gt=0, description="Deadline for the whole invocation"
    )
    max_output_bytes: int = Field(
        default=2000, gt=0, description="Captured stdout budget per command"
    )
    max_tool_rounds: int = Field(
        default=10, gt=0, description="Maximum model round trips"
    )

    # Output configuration
    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Logging level")

    @field_validator("api_key", mode="before")
    @classmethod
    def validate_api_key(cls, v):
        """Strip whitespace; an empty key counts as unset."""
        if isinstance(v, str):
            return v.strip() or None
        return v

    @field_validator("api_base", mode="before")
    @classmethod
    def validate_api_base(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_API_BASE
        return v.strip().rstrip("/") if isinstance(v, str) else v

    @field_validator("model", mode="before")
    @classmethod
    def validate_model(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_MODEL
        return v.strip() if isinstance(v, str) else v

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v):
        """Accept level names in any case."""
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def backend(self) -> BackendKind:
        return detect_backend(self.api_base)

    def validate_current_setup(self) -> bool:
        """Validate that an API key is available."""
        return self.api_key is not None and len(self.api_key.strip()) > 0


def get_config_path() -> Path:
    """Location of the persisted config file."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "llmc" / "config.toml"


def load_config_file(config_path: Path) -> Dict[str, Any]:
    """Load configuration from a TOML file.

    A missing file is an empty configuration. A file that exists but cannot be
    read or parsed is reported, since silently ignoring it would hide the key.
    """
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as e:
        raise ConfigurationError(f"cannot read config file {config_path}: {e}")


def load_environment_variables() -> Dict[str, Any]:
    """Load the supported overrides from the environment, skipping empty ones."""
    config = {}
    for env_var, key in (
        (ENV_API_KEY, "api_key"),
        (ENV_API_BASE, "api_base"),
        (ENV_MODEL, "model"),
        (ENV_LOG_LEVEL, "log_level"),
    ):
        value = os.environ.get(env_var, "").strip()
        if value:
            config[key] = value
    return config


def load_configuration(
    config_file: Optional[str] = None,
    debug: bool = False,
    model_override: Optional[str] = None,
) -> LLMCConfig:
    """Load configuration from multiple sources with priority handling.

    Priority order (highest to lowest):
    1. Function parameters (debug, model_override)
    2. Environment variables (LLM_API_KEY, LLM_API_BASE, LLM_MODEL, LLMC_LOG_LEVEL)
    3. Config file ($XDG_CONFIG_HOME/llmc/config.toml)
    4. Default values
    """
    config_path = Path(config_file) if config_file else get_config_path()

    merged_config: Dict[str, Any] = {}
    for key, value in load_config_file(config_path).items():
        # Empty strings in the file fall through to the defaults
        if value != "":
            merged_config[key] = value

    merged_config.update(load_environment_variables())

    if debug:
        merged_config["log_level"] = LogLevel.DEBUG

    if model_override:
        merged_config["model"] = model_override

    try:
        return LLMCConfig(**merged_config)
    except ValueError as e:
        raise ConfigurationError(f"invalid configuration in {config_path}: {e}")


def save_config(config: LLMCConfig, config_path: Optional[Path] = None) -> Path:
    """Persist the API triple to the config file, readable by the owner only."""
    if config_path is None:
        config_path = get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_dict = config.model_dump(
        include={"api_key", "api_base", "model"}, exclude_none=True
    )

    with open(config_path, "w", encoding="utf-8") as f:
        toml.dump(config_dict, f)
    if os.name == "posix":
        os.chmod(config_path, 0o600)

    return config_path


def is_interactive() -> bool:
    """Whether a human can answer setup prompts."""
    return sys.stdin is not None and sys.stdin.isatty()


def validate_api_setup(config: LLMCConfig) -> None:
    """Validate that API setup is complete."""
    if not config.validate_current_setup():
        raise ConfigurationError(
            f"no API key configured. Set {ENV_API_KEY} or run `llmc --setup`."
        )


def secret_free_environment(
    secret: Optional[str], environ: Optional[Dict[str, str]] = None
) -> Dict[str, str]:
    """Copy of the environment with every credential removed."""
    source = os.environ if environ is None else environ
    return {
        key: value
        for key, value in source.items()
        if key not in SECRET_ENV_VARS and not (secret and value == secret)
    }


def describe_config(config: LLMCConfig) -> List[str]:
    """Human readable lines for --show-config, never including the key itself."""
    return [
        f"API base: {config.api_base}",
        f"Backend: {config.backend.value}",
        f"Model: {config.model}",
        f"Log level: {config.log_level.value}",
        f"API key: {'set' if config.validate_current_setup() else 'not set'}",
        f"Config file: {get_config_path()}",
    ]
