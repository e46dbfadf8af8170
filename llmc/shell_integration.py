"""Ctrl+E widgets for bash and zsh, and their install/uninstall."""

import os
import shutil
from pathlib import Path
from typing import Callable, List, Optional

from rich.console import Console

from .config import get_config_path

SETUP_BASH = r"""# llmc: Bash integration, source this file in your .bashrc
# Usage: type a natural language description, then press Ctrl+E

_llmc_replace() {
  [[ -z "$READLINE_LINE" ]] && return

  local result
  result="$(llmc "$READLINE_LINE" 2>/dev/tty)"

  if [[ $? -eq 0 && -n "$result" ]]; then
    READLINE_LINE="$result"
    READLINE_POINT=${#READLINE_LINE}
  fi
}

bind -x '"\C-e": _llmc_replace'
"""

SETUP_ZSH = r"""# llmc: Zsh integration, source this file in your .zshrc
# Usage: type a natural language description, then press Ctrl+E

_llmc_replace() {
  [[ -z "$BUFFER" ]] && return

  local result
  result="$(llmc "$BUFFER" 2>/dev/tty)"

  if [[ $? -eq 0 && -n "$result" ]]; then
    BUFFER="$result"
    CURSOR=${#BUFFER}
  fi
  zle redisplay
}

zle -N _llmc_replace
bindkey '^e' _llmc_replace
"""

RC_FILES = (".zshrc", ".bashrc", ".profile")
SCRIPT_NAMES = ("setup_bash.sh", "setup_zsh.sh")


def data_dir(home: Path) -> Path:
    return home / ".local" / "share" / "llmc"


def install(
    home: Optional[Path] = None,
    shell: Optional[str] = None,
    console: Optional[Console] = None,
) -> Optional[Path]:
    """Write the widgets and source the right one from the shell's rc file.

    Returns:
        The rc file that was checked or updated, or None for other shells
    """
    home = home or Path.home()
    shell = os.environ.get("SHELL", "") if shell is None else shell
    console = console or Console(stderr=True)

    target = data_dir(home)
    target.mkdir(parents=True, exist_ok=True)
    bash_path = target / "setup_bash.sh"
    zsh_path = target / "setup_zsh.sh"
    bash_path.write_text(SETUP_BASH, encoding="utf-8")
    zsh_path.write_text(SETUP_ZSH, encoding="utf-8")
    console.print(f"Installed: {target}/")

    if shell.endswith("zsh"):
        rc_file, setup_file = home / ".zshrc", zsh_path
    elif shell.endswith("bash"):
        rc_file, setup_file = home / ".bashrc", bash_path
    else:
        console.print("Done! Shell integration is available for bash and zsh only.")
        return None

    rc_content = rc_file.read_text(encoding="utf-8") if rc_file.exists() else ""
    if str(setup_file) not in rc_content:
        with open(rc_file, "a", encoding="utf-8") as f:
            f.write(f'\nsource "{setup_file}"\n')
        console.print(f"Added Ctrl+E integration to {rc_file}")

    console.print()
    console.print("Done! Run this to activate now:")
    console.print(f"  source {rc_file}")
    return rc_file


def _strip_source_lines(rc_file: Path) -> bool:
    content = rc_file.read_text(encoding="utf-8")
    lines = content.splitlines(keepends=True)
    kept: List[str] = [
        line for line in lines if not any(name in line for name in SCRIPT_NAMES)
    ]
    if len(kept) == len(lines):
        return False
    rc_file.write_text("".join(kept), encoding="utf-8")
    return True


def uninstall(
    home: Optional[Path] = None,
    confirm: Optional[Callable[[str], bool]] = None,
    console: Optional[Console] = None,
) -> None:
    """Remove rc integration, the widget scripts and, if confirmed, the config."""
    home = home or Path.home()
    console = console or Console(stderr=True)

    console.print("Uninstalling llmc...")

    for name in RC_FILES:
        rc_file = home / name
        if rc_file.exists() and _strip_source_lines(rc_file):
            console.print(f"Cleaned: {rc_file}")

    target = data_dir(home)
    if target.exists():
        shutil.rmtree(target)
        console.print(f"Removed: {target}")

    config_dir = get_config_path().parent
    if config_dir.exists():
        if confirm is not None and confirm("Remove config (API key)?"):
            shutil.rmtree(config_dir)
            console.print(f"Removed: {config_dir}")
        else:
            console.print(f"Kept: {config_dir}")

    console.print()
    console.print("Done! Restart your shell to apply changes.")
