"""Release build step."""

from __future__ import annotations

from pathlib import Path

from .models import StepReceipt
from .process import run_command
from .settings import ReleaseSettings


def run_release_build(settings: ReleaseSettings, workspace: Path, receipt: StepReceipt | None = None) -> StepReceipt:
    """Run the configured release build in ``workspace``."""

    return run_command("build", settings.build_command, cwd=workspace, receipt=receipt)


def built_binary_path(settings: ReleaseSettings, workspace: Path, suffix: str) -> Path:
    return workspace / settings.build_output_dir / f"{settings.binary_name}{suffix}"
