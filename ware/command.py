"""
Subprocess helpers shared by the backends and system commands

run_cmd captures output and is used for read-only queries.
run_action attaches the terminal and is used for anything that changes
the system, so prompts and progress from the underlying tool stay visible.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ware.ui import run_with_spinner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: List[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_cmd(argv: Sequence[str], timeout: Optional[int] = 30) -> CmdResult:
    """Run a command with captured output; a missing binary reads as exit 127"""
    argv_list = list(argv)
    logger.debug("CMD %s", _fmt_argv(argv_list))

    try:
        p = subprocess.run(argv_list, capture_output=True, text=True,
                           errors="replace", timeout=timeout)
    except subprocess.TimeoutExpired:
        return CmdResult(argv_list, 124, "", f"{argv_list[0]} timed out")
    except OSError as e:
        return CmdResult(argv_list, 127, "", str(e))

    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())
    return CmdResult(argv_list, p.returncode, p.stdout, p.stderr)


def run_action(argv: Sequence[str], show_spinner: bool = True,
               cwd: Optional[str] = None) -> Tuple[bool, str]:
    """
    Run a mutating command with the terminal attached

    Returns:
        Tuple of (success, message)
    """
    argv_list = list(argv)
    logger.debug("ACTION %s", _fmt_argv(argv_list))

    try:
        returncode = run_with_spinner(argv_list, show_spinner, cwd=cwd)
    except OSError as e:
        return False, f"{argv_list[0]} could not be started: {e}"

    if returncode == 0:
        return True, ""
    return False, f"{_fmt_argv(argv_list)} exited with status {returncode}"
