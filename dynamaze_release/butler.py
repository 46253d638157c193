"""Download and drive itch.io's ``butler`` publishing tool."""

from __future__ import annotations

import logging
import stat
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import requests
from requests import Session
from requests.exceptions import RequestException

from .errors import ButlerError
from .models import StepReceipt
from .platforms import butler_platform_tag, executable_suffix
from .process import run_command
from .secrets import resolve_secret_info
from .settings import DEFAULT_BUTLER_URL, ReleaseSettings

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "butler.zip"
_CHUNK_SIZE = 1024 * 1024


def butler_download_url(
    platform_tag: str,
    *,
    arch: str = "amd64",
    version: str = "LATEST",
    template: str = DEFAULT_BUTLER_URL,
) -> str:
    return template.format(platform=platform_tag, arch=arch, version=version)


@dataclass(slots=True)
class ButlerTool:
    executable: Path
    cwd: Path

    def probe(self, receipt: Optional[StepReceipt] = None) -> StepReceipt:
        """Run ``butler -V`` to confirm the binary starts; output is not inspected."""

        return run_command("butler-probe", [str(self.executable), "-V"], cwd=self.cwd, receipt=receipt)

    def push(
        self,
        source_dir: Path,
        target: str,
        *,
        api_key_env: str = "BUTLER_API_KEY",
        receipt: Optional[StepReceipt] = None,
    ) -> StepReceipt:
        env: Dict[str, str] = {}
        info = resolve_secret_info(api_key_env)
        if info.value:
            env[api_key_env] = info.value
            logger.debug("Using %s from %s.", api_key_env, info.source)
        else:
            logger.warning("%s not set; butler will fall back to its stored credentials.", api_key_env)
        command = [str(self.executable), "push", str(source_dir), target]
        return run_command("push", command, cwd=self.cwd, env=env, receipt=receipt)


def _download(session: Session, url: str, archive_path: Path, timeout: float) -> None:
    with session.get(url, stream=True, timeout=timeout) as response:
        response.raise_for_status()
        with archive_path.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                if chunk:
                    handle.write(chunk)


def fetch_butler(
    settings: ReleaseSettings,
    workspace: Path,
    channel: str,
    *,
    session: Optional[Session] = None,
    receipt: Optional[StepReceipt] = None,
) -> ButlerTool:
    """Download the butler archive for ``channel``, unpack it and mark it executable.

    Every call downloads afresh; nothing is cached or checksummed.
    """

    receipt = receipt or StepReceipt(step="butler-fetch")
    tool_dir = workspace / settings.butler_dir
    url = butler_download_url(
        butler_platform_tag(channel),
        arch=settings.butler_arch,
        version=settings.butler_version,
        template=settings.butler_url_template,
    )
    archive_path = tool_dir / ARCHIVE_NAME
    receipt.details["url"] = url
    receipt.details["archive"] = str(archive_path)

    logger.info("Downloading butler from %s", url)
    try:
        tool_dir.mkdir(parents=True, exist_ok=True)
        if session is None:
            with requests.Session() as owned_session:
                _download(owned_session, url, archive_path, settings.download_timeout)
        else:
            _download(session, url, archive_path, settings.download_timeout)
    except RequestException as exc:
        receipt.status = "failed"
        raise ButlerError(f"Butler download failed from {url}: {exc}") from exc
    except OSError as exc:
        receipt.status = "failed"
        raise ButlerError(f"Cannot write butler archive {archive_path}: {exc}") from exc

    executable = tool_dir / f"butler{executable_suffix(channel)}"
    try:
        with zipfile.ZipFile(archive_path) as archive:
            archive.extractall(tool_dir)
            receipt.details["files"] = sorted(archive.namelist())
    except zipfile.BadZipFile as exc:
        receipt.status = "failed"
        raise ButlerError(f"Downloaded butler archive is not a zip file: {archive_path}") from exc
    except OSError as exc:
        receipt.status = "failed"
        raise ButlerError(f"Cannot unpack {archive_path} into {tool_dir}: {exc}") from exc

    if not executable.is_file():
        receipt.status = "failed"
        raise ButlerError(f"Butler archive did not contain {executable.name}")
    try:
        executable.chmod(executable.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    except OSError as exc:
        receipt.status = "failed"
        raise ButlerError(f"Cannot mark {executable} executable: {exc}") from exc
    receipt.details["executable"] = str(executable)
    return ButlerTool(executable=executable, cwd=workspace)
