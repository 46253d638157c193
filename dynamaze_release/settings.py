"""Release configuration loaded from ``release.yaml``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import SettingsError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "release.yaml"
DEFAULT_BUTLER_URL = "https://broth.itch.ovh/butler/{platform}-{arch}/{version}/archive/default"


class ReleaseSettings(BaseModel):
    namespace: str = Field(default="boringcactus/dynamaze", description="itch.io user/game the channels belong to.")
    binary_name: str = "dynamaze"
    build_command: List[str] = Field(default_factory=lambda: ["cargo", "build", "--release"])
    build_output_dir: str = Field(default="target/release", description="Where the release build writes the binary.")
    staging_dir: str = "dist"
    native_sources: List[str] = Field(default_factory=lambda: ["assets"])
    web_sources: List[str] = Field(default_factory=lambda: ["assets", "pkg", "index.html"])
    web_channel: str = "web"
    channel_env: str = Field(default="TRAVIS_OS_NAME", description="Environment variable naming the CI OS.")
    butler_url_template: str = DEFAULT_BUTLER_URL
    butler_arch: str = "amd64"
    butler_version: str = "LATEST"
    butler_dir: str = Field(default=".", description="Directory butler is unpacked into, relative to the workspace.")
    butler_api_key_env: str = "BUTLER_API_KEY"
    download_timeout: float = 60.0

    model_config = ConfigDict(extra="forbid")


def load_settings(path: Optional[Path], *, workspace_root: Optional[Path] = None) -> ReleaseSettings:
    """Load settings from YAML, falling back to defaults when no file exists.

    An explicit ``path`` must exist; the implicit ``release.yaml`` in the
    workspace root is optional.
    """

    explicit = path is not None
    if path is None:
        path = (workspace_root or Path.cwd()) / DEFAULT_CONFIG_NAME
    if not path.exists():
        if explicit:
            raise SettingsError(f"Release config not found: {path}")
        logger.debug("No release config at %s; using defaults.", path)
        return ReleaseSettings()

    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SettingsError(f"Release config {path} must be a mapping.")

    try:
        settings = ReleaseSettings.model_validate(payload)
    except ValidationError as exc:
        raise SettingsError(f"Invalid release config {path}: {exc}") from exc
    logger.debug("Loaded release config from %s.", path)
    return settings
