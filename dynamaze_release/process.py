"""Blocking subprocess execution for build and publish steps."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Optional, Sequence

from .errors import CommandError
from .models import StepReceipt

logger = logging.getLogger(__name__)

# Shell convention for "command not found".
COMMAND_NOT_FOUND = 127


def run_command(
    step: str,
    command: Sequence[str],
    *,
    cwd: Path,
    env: Optional[Dict[str, str]] = None,
    receipt: Optional[StepReceipt] = None,
) -> StepReceipt:
    """Run ``command`` to completion and return its receipt.

    Raises ``CommandError`` on a non-zero exit or a missing executable. The
    receipt passed in (or created here) is filled in before raising so callers
    can still report the failed step.
    """

    argv = [str(part) for part in command]
    receipt = receipt or StepReceipt(step=step)
    receipt.command = argv
    logger.info("[%s] %s", step, " ".join(argv))

    merged_env = os.environ.copy()
    if env:
        merged_env.update(env)

    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            env=merged_env,
            check=False,
        )
    except FileNotFoundError as exc:
        receipt.status = "failed"
        receipt.returncode = COMMAND_NOT_FOUND
        receipt.output.append(str(exc))
        raise CommandError(argv, COMMAND_NOT_FOUND, str(exc)) from exc

    for stream in (proc.stdout, proc.stderr):
        if stream and stream.strip():
            for line in stream.strip().splitlines():
                logger.debug("[%s] %s", step, line)
            receipt.output.append(stream.strip())

    receipt.returncode = proc.returncode
    if proc.returncode != 0:
        receipt.status = "failed"
        detail = (proc.stderr or proc.stdout or "").strip() or None
        raise CommandError(argv, proc.returncode, detail)
    return receipt
