"""Tests for installing and removing the Ctrl+E widgets."""

import io

import pytest
from rich.console import Console

from llmc import shell_integration
from llmc.config import LLMCConfig, get_config_path, save_config


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=120)


@pytest.fixture
def home(temp_dir):
    path = temp_dir / "home"
    path.mkdir()
    return path


@pytest.mark.parametrize(
    "shell,rc_name,script",
    [("/bin/bash", ".bashrc", "setup_bash.sh"), ("/usr/bin/zsh", ".zshrc", "setup_zsh.sh")],
)
def test_install_sources_widget_once(home, console, shell, rc_name, script):
    rc_file = shell_integration.install(home=home, shell=shell, console=console)
    shell_integration.install(home=home, shell=shell, console=console)

    assert rc_file == home / rc_name
    setup_file = shell_integration.data_dir(home) / script
    assert setup_file.exists()
    assert rc_file.read_text().count(f'source "{setup_file}"') == 1


def test_install_keeps_existing_rc_content(home, console):
    (home / ".bashrc").write_text("export EDITOR=vi\n")
    shell_integration.install(home=home, shell="/bin/bash", console=console)
    assert (home / ".bashrc").read_text().startswith("export EDITOR=vi\n")


def test_widgets_keep_stderr_on_terminal():
    for script in (shell_integration.SETUP_BASH, shell_integration.SETUP_ZSH):
        assert "2>/dev/tty" in script
    assert "bind -x" in shell_integration.SETUP_BASH
    assert "bindkey '^e'" in shell_integration.SETUP_ZSH


def test_other_shells_only_get_scripts(home, console):
    assert shell_integration.install(home=home, shell="/usr/bin/fish", console=console) is None
    assert (shell_integration.data_dir(home) / "setup_bash.sh").exists()
    assert not (home / ".bashrc").exists()


def test_uninstall_removes_integration_and_keeps_config(home, console):
    shell_integration.install(home=home, shell="/bin/bash", console=console)
    (home / ".bashrc").write_text(
        "alias ll='ls -l'\n" + (home / ".bashrc").read_text()
    )
    save_config(LLMCConfig(api_key="k"))

    shell_integration.uninstall(home=home, confirm=lambda question: False, console=console)

    assert (home / ".bashrc").read_text().strip() == "alias ll='ls -l'"
    assert not shell_integration.data_dir(home).exists()
    assert get_config_path().exists()
    assert "Kept:" in console.file.getvalue()


def test_uninstall_removes_config_when_confirmed(home, console):
    save_config(LLMCConfig(api_key="k"))
    questions = []

    def confirm(question):
        questions.append(question)
        return True

    shell_integration.uninstall(home=home, confirm=confirm, console=console)

    assert questions == ["Remove config (API key)?"]
    assert not get_config_path().parent.exists()


def test_uninstall_without_anything_installed(home, console):
    shell_integration.uninstall(home=home, console=console)
    assert "Done!" in console.file.getvalue()
