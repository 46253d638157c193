from __future__ import annotations

import json
from contextlib import redirect_stdout
from io import StringIO
from pathlib import Path
from unittest import mock

import pytest

from dynamaze_release import cli

from .helpers import FakeProcess, FakeSession, write_release_binary


def _run_cli(argv: list[str]) -> tuple[int, dict]:
    buffer = StringIO()
    with redirect_stdout(buffer):
        code = cli.main(argv)
    output = buffer.getvalue()
    return code, json.loads(output) if output else {}


def test_cli_native_release(game_workspace: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRAVIS_OS_NAME", "linux")
    process = FakeProcess(on_build=lambda: write_release_binary(game_workspace))
    receipt_path = game_workspace / "receipts" / "native.json"

    with mock.patch("subprocess.run", process), mock.patch("requests.Session", return_value=FakeSession()):
        code, payload = _run_cli(
            ["native", "--workspace-root", str(game_workspace), "--receipt", str(receipt_path)]
        )

    assert code == 0
    assert payload["status"] == "ok"
    assert payload["target"] == "boringcactus/dynamaze:linux"
    assert payload["staged"] == ["assets", "dynamaze"]
    assert json.loads(receipt_path.read_text(encoding="utf-8"))["pipeline"] == "native-release"


def test_cli_web_dry_run_with_namespace_override(game_workspace: Path) -> None:
    process = FakeProcess()
    with mock.patch("subprocess.run", process), mock.patch("requests.Session", return_value=FakeSession()):
        code, payload = _run_cli(
            [
                "web",
                "--workspace-root",
                str(game_workspace),
                "--namespace",
                "someone/maze",
                "--dry-run",
            ]
        )

    assert code == 0
    assert payload["target"] == "someone/maze:web"
    assert payload["receipts"][-1]["status"] == "skipped"
    assert process.commands("push") == []


def test_cli_returns_build_exit_code(game_workspace: Path) -> None:
    process = FakeProcess(failures={"build": 101})
    with mock.patch("subprocess.run", process):
        code, payload = _run_cli(["native", "--channel", "linux", "--workspace-root", str(game_workspace)])

    assert code == 101
    assert payload["status"] == "failed"
    assert not (game_workspace / "dist").exists()


def test_cli_reports_invalid_config(tmp_path: Path) -> None:
    (tmp_path / "release.yaml").write_text("unknown_key: 1\n", encoding="utf-8")
    code, payload = _run_cli(["web", "--workspace-root", str(tmp_path)])
    assert code == 1
    assert payload == {}


def test_cli_lists_pipelines() -> None:
    code, payload = _run_cli(["pipelines"])
    assert code == 0
    assert {entry["slug"] for entry in payload["pipelines"]} >= {"native-release", "web-release"}


def test_cli_secrets_list_hides_values(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("BUTLER_API_KEY=super-secret\n", encoding="utf-8")
    buffer = StringIO()
    with redirect_stdout(buffer):
        code = cli.main(["secrets-list", "--workspace-root", str(tmp_path)])

    assert code == 0
    assert "super-secret" not in buffer.getvalue()
    payload = json.loads(buffer.getvalue())
    butler = next(entry for entry in payload["secrets"] if entry["name"] == "BUTLER_API_KEY")
    assert butler["present"] is True
    assert butler["source"] == "dotenv"


def test_cli_signal_killed_build_exit_code(game_workspace: Path) -> None:
    with mock.patch("subprocess.run", FakeProcess(failures={"build": -9})):
        code, payload = _run_cli(["native", "--channel", "linux", "--workspace-root", str(game_workspace)])

    assert code == 137
    assert payload["status"] == "failed"


def test_cli_staging_failure_prints_result(game_workspace: Path) -> None:
    with mock.patch("subprocess.run", FakeProcess()), mock.patch(
        "shutil.copytree", side_effect=OSError("disk full")
    ):
        code, payload = _run_cli(["web", "--workspace-root", str(game_workspace)])

    assert code == 1
    assert payload["status"] == "failed"
    assert payload["receipts"][-1]["step"] == "stage"
