"""Assembly of the ``dist`` directory handed to butler."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, List, Sequence

from .errors import StagingError

logger = logging.getLogger(__name__)


def create_staging_dir(path: Path, *, clean: bool = False) -> Path:
    """Create a fresh staging directory.

    Fails if ``path`` already exists unless ``clean`` is set, in which case the
    old directory is removed first.
    """

    try:
        if clean and (path.exists() or path.is_symlink()):
            logger.info("Removing existing staging directory %s.", path)
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        path.mkdir(parents=True)
    except FileExistsError as exc:
        raise StagingError(f"Staging directory already exists: {path} (use --clean to replace it)") from exc
    except OSError as exc:
        raise StagingError(f"Cannot create staging directory {path}: {exc}") from exc
    return path


def copy_into(source: Path, staging_dir: Path) -> Path:
    """Copy a file or directory into ``staging_dir`` keeping its name and structure."""

    if not source.exists():
        raise StagingError(f"Staging source not found: {source}")
    destination = staging_dir / source.name
    try:
        if source.is_dir():
            # Links are copied as links, matching `cp -r`.
            shutil.copytree(source, destination, symlinks=True)
        else:
            shutil.copy2(source, destination)
    except OSError as exc:
        raise StagingError(f"Failed to stage {source} into {staging_dir}: {exc}") from exc
    logger.debug("Staged %s -> %s", source, destination)
    return destination


def stage_sources(workspace: Path, staging_dir: Path, sources: Iterable[str]) -> List[str]:
    staged: List[str] = []
    for relative in sources:
        staged.append(copy_into(workspace / relative, staging_dir).name)
    return staged


def stage_native(workspace: Path, staging_dir: Path, sources: Sequence[str], binary: Path) -> List[str]:
    """Stage the shared sources plus the platform binary."""

    staged = stage_sources(workspace, staging_dir, sources)
    if not binary.is_file():
        raise StagingError(f"Release binary not found: {binary}")
    staged.append(copy_into(binary, staging_dir).name)
    return staged


def stage_web(workspace: Path, staging_dir: Path, sources: Sequence[str]) -> List[str]:
    """Stage the pre-built web bundle."""

    return stage_sources(workspace, staging_dir, sources)


def verify_layout(staging_dir: Path, expected: Iterable[str]) -> List[str]:
    """Check that ``staging_dir`` holds exactly the ``expected`` top-level entries."""

    if not staging_dir.is_dir():
        raise StagingError(f"Staging directory missing: {staging_dir}")
    present = sorted(entry.name for entry in staging_dir.iterdir())
    if not present:
        raise StagingError(f"Staging directory is empty: {staging_dir}")
    wanted = sorted(set(expected))
    if present != wanted:
        missing = sorted(set(wanted) - set(present))
        extra = sorted(set(present) - set(wanted))
        raise StagingError(
            f"Unexpected staging layout in {staging_dir}: missing={missing} extra={extra}"
        )
    return present
