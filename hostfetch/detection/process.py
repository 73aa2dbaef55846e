from __future__ import annotations

import subprocess
from typing import Callable, Optional, Sequence


# argv -> stdout, or None when the command could not run or exited non-zero.
CommandRunner = Callable[[Sequence[str]], Optional[str]]


def run_command(argv: Sequence[str]) -> Optional[str]:
    """
    Run an external command and return its stdout with trailing whitespace removed.

    No timeout is applied: a hanging command stalls the caller.
    """
    try:
        cp = subprocess.run(
            list(argv),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=False,
        )
    except OSError:
        return None
    if cp.returncode != 0:
        return None
    return cp.stdout.rstrip()
