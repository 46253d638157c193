from __future__ import annotations

import io
import zipfile
from pathlib import Path
from typing import Any
from unittest import mock

import requests


def make_butler_zip(executable: str = "butler", extra: tuple[str, ...] = ("7z.so",)) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr(executable, "#!/bin/sh\necho butler\n")
        for name in extra:
            archive.writestr(name, "lib")
    return buffer.getvalue()


class FakeResponse:
    def __init__(self, content: bytes = b"", status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc: object) -> None:
        return None

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def iter_content(self, chunk_size: int = 1) -> Any:
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start : start + chunk_size]


class FakeSession:
    def __init__(self, response: FakeResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or FakeResponse(make_butler_zip())
        self.error = error
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc: object) -> None:
        self.closed = True

    def get(self, url: str, stream: bool = False, timeout: float | None = None) -> FakeResponse:
        self.calls.append({"url": url, "stream": stream, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def write_release_binary(workspace: Path, suffix: str = "") -> Path:
    binary = workspace / "target" / "release" / f"dynamaze{suffix}"
    binary.parent.mkdir(parents=True, exist_ok=True)
    binary.write_bytes(b"\x7fELF")
    return binary


class FakeProcess:
    """Stand-in for ``subprocess.run`` recording every command."""

    def __init__(self, failures: dict[str, int] | None = None, on_build: Any = None) -> None:
        self.failures = failures or {}
        self.on_build = on_build
        self.calls: list[dict[str, Any]] = []

    def __call__(self, argv: list[str], **kwargs: Any) -> Any:
        self.calls.append({"argv": list(argv), **kwargs})
        key = self.key(argv)
        returncode = self.failures.get(key, 0)
        if key == "build" and returncode == 0 and self.on_build is not None:
            self.on_build()
        return mock.Mock(returncode=returncode, stdout=f"{key} output\n", stderr="")

    @staticmethod
    def key(argv: list[str]) -> str:
        if argv[1:2] == ["-V"]:
            return "probe"
        if argv[1:2] == ["push"]:
            return "push"
        return "build"

    def commands(self, key: str) -> list[list[str]]:
        return [call["argv"] for call in self.calls if self.key(call["argv"]) == key]
