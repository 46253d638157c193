"""Channel and platform naming helpers."""

from __future__ import annotations

import platform
from typing import Mapping, Optional

from .errors import ChannelError

WINDOWS_CHANNEL = "windows"

# Host OS name (platform.system()) -> CI channel name.
_HOST_CHANNELS = {
    "Linux": "linux",
    "Darwin": "osx",
    "Windows": WINDOWS_CHANNEL,
}

# Channels whose butler download tag differs from the channel name.
_BUTLER_TAGS = {
    "osx": "darwin",
}


def butler_platform_tag(channel: str) -> str:
    """Return the platform tag butler's download server expects for ``channel``."""

    return _BUTLER_TAGS.get(channel, channel)


def executable_suffix(channel: str) -> str:
    return ".exe" if channel == WINDOWS_CHANNEL else ""


def host_channel(system: Optional[str] = None) -> str:
    system = system or platform.system()
    try:
        return _HOST_CHANNELS[system]
    except KeyError as exc:
        raise ChannelError(f"Unsupported host operating system '{system}'.") from exc


def resolve_channel(
    explicit: Optional[str],
    env: Mapping[str, str],
    env_var: str,
    *,
    system: Optional[str] = None,
) -> str:
    """Pick the channel from an explicit value, the CI variable, or the host OS."""

    if explicit:
        return explicit
    value = env.get(env_var)
    if value:
        return value
    return host_channel(system)


def push_target(namespace: str, channel: str) -> str:
    if not namespace or not channel:
        raise ChannelError(f"Push target needs a namespace and a channel (got '{namespace}:{channel}').")
    return f"{namespace}:{channel}"
