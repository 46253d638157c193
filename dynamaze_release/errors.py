"""Exception hierarchy for release tooling."""

from __future__ import annotations

from typing import Optional, Sequence


class ReleaseError(RuntimeError):
    """Base class for all release failures."""

    exit_code: int = 1


class CommandError(ReleaseError):
    """Raised when an external command exits non-zero or cannot be started."""

    def __init__(self, command: Sequence[str], returncode: int, output: Optional[str] = None) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.output = output
        message = f"Command {' '.join(self.command)!r} failed with exit code {returncode}"
        if output:
            message = f"{message}: {output}"
        super().__init__(message)

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        # Signal deaths report as 128 + signum, the way a shell does.
        if self.returncode < 0:
            return 128 + abs(self.returncode)
        return self.returncode


class StagingError(ReleaseError):
    """Raised when the staging directory cannot be assembled."""


class ButlerError(ReleaseError):
    """Raised when the butler tool cannot be downloaded or unpacked."""


class ChannelError(ReleaseError):
    """Raised when no distribution channel can be determined."""


class SettingsError(ReleaseError):
    """Raised when the release configuration is unreadable or invalid."""
