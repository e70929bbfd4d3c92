from __future__ import annotations

import json
from pathlib import Path

import pytest

import ghops
from ghops import cli


def _run(capsys, argv) -> tuple[int, dict]:
    exit_code = cli.main(argv)
    captured = capsys.readouterr()
    return exit_code, json.loads(captured.out)


@pytest.fixture(autouse=True)
def in_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_version_string_present() -> None:
    assert isinstance(ghops.__version__, str)
    assert ghops.__version__


def test_normalize_dry_run_outputs_json(capsys, in_tmp: Path) -> None:
    (in_tmp / "Folge 2.mp3").write_bytes(b"x")

    exit_code, payload = _run(capsys, ["release", "normalize", "--dry-run", "Folge 2.mp3"])

    assert exit_code == 0
    assert payload["status"] == "ok"
    assert payload["dry_run"] is True
    assert payload["files"] == [str(in_tmp / "Folge_2.mp3")]
    assert (in_tmp / "Folge 2.mp3").exists()


def test_revert_with_keep_and_just_reports_configuration_error(capsys, fake_runner, fake_repo: Path) -> None:
    exit_code, payload = _run(
        capsys,
        ["revert", "--repo-dir", str(fake_repo), "--commit", "HEAD~1", "--keep", "a.txt", "--just", "b.txt"],
    )

    assert exit_code == 1
    assert payload["status"] == "error"
    assert payload["error"] == "configuration"
    assert fake_runner.calls == []


def test_release_exists(capsys, fake_runner, fake_repo: Path) -> None:
    fake_runner.queue(0, "v1\nv2\n")

    exit_code, payload = _run(capsys, ["release", "exists", "--tag", "v2", "--repo-dir", str(fake_repo)])

    assert exit_code == 0
    assert payload == {"status": "ok", "tag": "v2", "exists": True}


def test_operational_error_includes_output(capsys, fake_runner, fake_repo: Path) -> None:
    fake_runner.queue(1, "", "HTTP 404: Not Found\n")

    exit_code, payload = _run(capsys, ["run", "log", "--repo-dir", str(fake_repo), "--run-id", "42"])

    assert exit_code == 1
    assert payload["error"] == "operational"
    assert payload["output"] == ["HTTP 404: Not Found"]
    assert payload["returncode"] == 1


def test_secret_describe_uses_local_dotenv(capsys, in_tmp: Path) -> None:
    (in_tmp / ".env").write_text("DEPLOY_KEY=zq-dotenv-value\n", encoding="utf-8")

    exit_code, payload = _run(capsys, ["secret", "describe", "--name", "DEPLOY_KEY"])

    assert exit_code == 0
    assert payload["present"] is True
    assert payload["source"] == "dotenv"
    assert "zq-dotenv-value" not in json.dumps(payload)


def test_remove_history_requires_confirmation(capsys, fake_runner, fake_repo: Path) -> None:
    exit_code, payload = _run(capsys, ["git", "remove-history", "--repo-dir", str(fake_repo)])

    assert exit_code == 1
    assert payload["error"] == "configuration"
    assert fake_runner.calls == []


def test_invalid_config_file_is_reported(capsys, in_tmp: Path) -> None:
    (in_tmp / "ghops.yaml").write_text("unknown_option: 1\n", encoding="utf-8")

    exit_code, payload = _run(capsys, ["secret", "describe", "--name", "X"])

    assert exit_code == 1
    assert payload["error"] == "configuration"


def test_repeated_runs_register_local_dotenv_once(capsys, in_tmp: Path) -> None:
    (in_tmp / ".env").write_text("DEPLOY_KEY=zq-dotenv-value\n", encoding="utf-8")

    _run(capsys, ["secret", "describe", "--name", "DEPLOY_KEY"])
    exit_code, payload = _run(capsys, ["secret", "describe", "--name", "MISSING_KEY"])

    assert exit_code == 0
    assert [attempt["source"] for attempt in payload["attempts"]] == ["env", "dotenv"]
