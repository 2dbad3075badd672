"""
Blocking execution of external commands.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one external command."""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined output, stripped, for diagnostics and fault matching."""
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


def run_command(args: List[str], input: Optional[str] = None,
                timeout: Optional[float] = None) -> CommandResult:
    """
    Run a command and wait for it.

    Never raises for a failing command: a missing executable or a timeout is
    reported as a failed result carrying the error text.

    Args:
        args: Program and arguments
        input: Text written to the command's stdin (secrets go here, not in args)
        timeout: Seconds before the command is killed
    """
    logger.debug("Running %s", " ".join(args))
    try:
        completed = subprocess.run(
            args,
            input=input,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(args, 124, stderr=f"{args[0]}: timed out after {timeout}s")
    except OSError as e:
        return CommandResult(args, 127, stderr=f"{args[0]}: {e}")

    return CommandResult(args, completed.returncode, completed.stdout or "", completed.stderr or "")
