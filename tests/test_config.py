"""Unit tests for configuration management."""

import os
import stat

import pytest

from llmc.config import (
    DEFAULT_API_BASE,
    DEFAULT_MODEL,
    BackendKind,
    LLMCConfig,
    LogLevel,
    detect_backend,
    get_config_path,
    load_configuration,
    load_environment_variables,
    save_config,
    secret_free_environment,
    validate_api_setup,
)
from llmc.errors import ConfigurationError


class TestLLMCConfig:
    """Test the LLMCConfig class."""

    def test_default_configuration(self):
        config = LLMCConfig()

        assert config.api_key is None
        assert config.api_base == DEFAULT_API_BASE
        assert config.model == DEFAULT_MODEL
        assert config.hard_timeout == 15
        assert config.max_output_bytes == 2000
        assert config.max_tool_rounds == 10
        assert config.backend == BackendKind.OPENAI

    def test_empty_values_count_as_unset(self):
        config = LLMCConfig(api_key="  ", api_base="", model=" ")
        assert config.api_key is None
        assert config.api_base == DEFAULT_API_BASE
        assert config.model == DEFAULT_MODEL

    def test_api_base_trailing_slash_removed(self):
        config = LLMCConfig(api_base="https://api.anthropic.com/")
        assert config.api_base == "https://api.anthropic.com"

    def test_validators_use_field_validator_api(self):
        decorators = LLMCConfig.__pydantic_decorators__
        assert not decorators.validators
        assert set(decorators.field_validators) == {
            "validate_api_key",
            "validate_api_base",
            "validate_model",
            "validate_log_level",
        }

    def test_validate_current_setup(self):
        assert LLMCConfig(api_key="k").validate_current_setup()
        assert not LLMCConfig().validate_current_setup()

    def test_validate_api_setup_explains_fix(self):
        with pytest.raises(ConfigurationError, match="LLM_API_KEY"):
            validate_api_setup(LLMCConfig())


class TestBackendDetection:
    """Backend kind follows the API base URL."""

    @pytest.mark.parametrize(
        "api_base,expected",
        [
            ("https://api.anthropic.com", BackendKind.ANTHROPIC),
            ("https://proxy.anthropic.com/v1", BackendKind.ANTHROPIC),
            ("https://api.openai.com/v1", BackendKind.OPENAI),
            ("https://generativelanguage.googleapis.com/v1beta/openai", BackendKind.OPENAI),
            ("http://localhost:11434/v1", BackendKind.OPENAI),
        ],
    )
    def test_detect_backend(self, api_base, expected):
        assert detect_backend(api_base) == expected


class TestLoading:
    """Environment, file and default precedence."""

    def test_config_path_honours_xdg(self, temp_dir):
        assert get_config_path() == temp_dir / "xdg" / "llmc" / "config.toml"

    def test_defaults_without_sources(self):
        config = load_configuration()
        assert config.api_key is None
        assert config.model == DEFAULT_MODEL

    def test_file_values_are_used(self):
        save_config(
            LLMCConfig(
                api_key="file-key",
                api_base="https://api.anthropic.com",
                model="claude-haiku-4-5-20251001",
            )
        )
        config = load_configuration()
        assert config.api_key == "file-key"
        assert config.backend == BackendKind.ANTHROPIC

    def test_environment_beats_file(self, monkeypatch):
        save_config(LLMCConfig(api_key="file-key", model="file-model"))
        monkeypatch.setenv("LLM_API_KEY", "env-key")
        monkeypatch.setenv("LLM_MODEL", "env-model")

        config = load_configuration()
        assert config.api_key == "env-key"
        assert config.model == "env-model"

    def test_empty_environment_falls_through(self, monkeypatch):
        save_config(LLMCConfig(api_key="file-key"))
        monkeypatch.setenv("LLM_API_KEY", "")
        assert load_environment_variables() == {}
        assert load_configuration().api_key == "file-key"

    def test_model_override_beats_everything(self, monkeypatch):
        monkeypatch.setenv("LLM_MODEL", "env-model")
        config = load_configuration(model_override="cli-model")
        assert config.model == "cli-model"

    def test_debug_flag(self):
        config = load_configuration(debug=True)
        assert config.log_level == LogLevel.DEBUG

    def test_log_level_from_file(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text('api_key = "k"\nlog_level = "debug"\n')
        assert load_configuration().log_level == LogLevel.DEBUG

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv("LLMC_LOG_LEVEL", "INFO")
        assert load_configuration().log_level == LogLevel.INFO

    def test_unknown_log_level_is_reported(self, monkeypatch):
        monkeypatch.setenv("LLMC_LOG_LEVEL", "chatty")
        with pytest.raises(ConfigurationError, match="invalid configuration"):
            load_configuration()

    def test_broken_file_is_reported(self):
        path = get_config_path()
        path.parent.mkdir(parents=True)
        path.write_text("api_key = [unterminated")
        with pytest.raises(ConfigurationError, match="cannot read config file"):
            load_configuration()

    def test_explicit_config_file(self, temp_dir):
        custom = temp_dir / "custom.toml"
        custom.write_text('api_key = "custom-key"\nmodel = "m"\n')
        config = load_configuration(config_file=str(custom))
        assert config.api_key == "custom-key"
        assert config.model == "m"


class TestSaving:
    """Persisted config file."""

    def test_save_writes_only_the_triple(self):
        path = save_config(LLMCConfig(api_key="k", model="m", hard_timeout=99))
        content = path.read_text()
        assert 'api_key = "k"' in content
        assert "hard_timeout" not in content

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions")
    def test_save_is_owner_only(self):
        path = save_config(LLMCConfig(api_key="k"))
        assert stat.S_IMODE(path.stat().st_mode) == 0o600


class TestSecretFreeEnvironment:
    """Credentials never reach sandboxed commands."""

    def test_strips_known_names_and_matching_values(self):
        environ = {
            "PATH": "/usr/bin",
            "LLM_API_KEY": "s3cret",
            "OPENAI_API_KEY": "other",
            "MY_COPY": "s3cret",
        }
        assert secret_free_environment("s3cret", environ) == {"PATH": "/usr/bin"}

    def test_without_secret_only_names_are_stripped(self):
        environ = {"PATH": "/usr/bin", "EMPTY": "", "ANTHROPIC_API_KEY": "x"}
        assert secret_free_environment(None, environ) == {"PATH": "/usr/bin", "EMPTY": ""}
