from __future__ import annotations

from pathlib import Path

import pytest

from dynamaze_release import secrets


@pytest.fixture(autouse=True)
def _isolate_secret_resolvers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(secrets, "_resolvers", [])
    secrets.register_resolver(secrets.EnvResolver(), priority=0, name="env", source="env")
    monkeypatch.delenv("BUTLER_API_KEY", raising=False)
    monkeypatch.delenv("TRAVIS_OS_NAME", raising=False)


@pytest.fixture()
def game_workspace(tmp_path: Path) -> Path:
    """A checkout with assets and a web bundle, before any build has run."""

    (tmp_path / "assets" / "sounds").mkdir(parents=True)
    (tmp_path / "assets" / "font.ttf").write_bytes(b"font")
    (tmp_path / "assets" / "sounds" / "step.ogg").write_bytes(b"ogg")
    (tmp_path / "pkg").mkdir()
    (tmp_path / "pkg" / "dynamaze_bg.wasm").write_bytes(b"\0asm")
    (tmp_path / "index.html").write_text("<html></html>\n", encoding="utf-8")
    return tmp_path
