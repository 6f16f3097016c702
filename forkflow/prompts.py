"""
Interactive prompts backed by gum and fzf.

The tools draw their UI on the terminal and print the answer on stdout, so
only stdout is captured. A cancelled prompt (Esc, Ctrl-C, empty answer) is a
normal outcome and is returned as None / [] / False.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Sequence

from .errors import MissingCommandError


logger = logging.getLogger(__name__)

# gum and fzf exit with 130 on Ctrl-C and 1 when nothing was chosen
CANCEL_CODES = {1, 130}


def has_cmd(name: str) -> bool:
    return shutil.which(name) is not None


def require_cmd(name: str) -> None:
    """Raise MissingCommandError when `name` is not on PATH."""
    if not has_cmd(name):
        raise MissingCommandError(name)


class Prompter:
    """gum/fzf front end used by the workflow commands and menus."""

    def _capture(self, cmd: list[str], stdin: str | None = None) -> str | None:
        logger.debug("Prompt: %s", " ".join(cmd))
        result = subprocess.run(
            cmd,
            input=stdin,
            stdout=subprocess.PIPE,
            text=True,
        )
        if result.returncode in CANCEL_CODES:
            return None
        if result.returncode != 0:
            logger.warning("%s exited with %d", cmd[0], result.returncode)
            return None
        return result.stdout

    def choose(self, header: str, options: Sequence[str]) -> str | None:
        """Single choice from `options`."""
        require_cmd("gum")
        out = self._capture(["gum", "choose", f"--header={header}", *options])
        choice = (out or "").strip()
        return choice or None

    def choose_many(
        self,
        header: str,
        options: Sequence[str],
        selected: Sequence[str] = (),
    ) -> list[str]:
        """Multi-select; `selected` are pre-toggled."""
        require_cmd("gum")
        cmd = ["gum", "choose", "--no-limit", f"--header={header}"]
        preselected = [s for s in selected if s in options]
        if preselected:
            cmd.append(f"--selected={','.join(preselected)}")
        out = self._capture(cmd, stdin="\n".join(options) + "\n")
        return [line for line in (out or "").splitlines() if line.strip()]

    def confirm(self, message: str) -> bool:
        require_cmd("gum")
        logger.debug("Confirm: %s", message)
        return subprocess.run(["gum", "confirm", message]).returncode == 0

    def input(self, placeholder: str, width: int | None = None) -> str | None:
        require_cmd("gum")
        cmd = ["gum", "input", f"--placeholder={placeholder}"]
        if width:
            cmd.append(f"--width={width}")
        out = self._capture(cmd)
        value = (out or "").strip()
        return value or None

    def fuzzy_select(self, options: Sequence[str], prompt: str = "Select: ") -> str | None:
        """Pick one line with fzf."""
        require_cmd("fzf")
        out = self._capture(
            ["fzf", f"--prompt={prompt}", "--height=40%", "--reverse"],
            stdin="\n".join(options) + "\n",
        )
        choice = (out or "").strip()
        return choice or None
