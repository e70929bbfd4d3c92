from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest

import ghops.secrets as secrets
from ghops.config import GhopsSettings
from ghops.dispatcher import Dispatcher

from .gitutil import git, write


@pytest.fixture(autouse=True)
def isolated_secrets(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(secrets, "_secret_specs", {})
    monkeypatch.setattr(secrets, "_resolvers", [])
    secrets.register_resolver(secrets.EnvResolver(), priority=0, name="env", source="env")
    for key in list(os.environ):
        if key.startswith("GHOPS_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)
    return secrets


@dataclass
class FakeRunner:
    """Stands in for ``subprocess.run`` and records every call."""

    calls: List[Dict[str, Any]] = field(default_factory=list)
    responses: List[Tuple[int, str, str]] = field(default_factory=list)
    raises: BaseException | None = None

    def queue(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> "FakeRunner":
        self.responses.append((returncode, stdout, stderr))
        return self

    def __call__(self, argv: List[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append(
            {
                "argv": list(argv),
                "cwd": Path(os.getcwd()).resolve(),
                "input": kwargs.get("input"),
                "env": kwargs.get("env"),
                "capture_output": kwargs.get("capture_output"),
            }
        )
        if self.raises is not None:
            raise self.raises
        returncode, stdout, stderr = self.responses.pop(0) if self.responses else (0, "", "")
        return subprocess.CompletedProcess(argv, returncode, stdout, stderr)

    @property
    def args(self) -> List[List[str]]:
        return [call["argv"][1:] for call in self.calls]


@pytest.fixture()
def fake_runner(monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    runner = FakeRunner()
    monkeypatch.setattr("ghops.dispatcher.subprocess.run", runner)
    monkeypatch.setattr("ghops.dispatcher.shutil.which", lambda name: f"/usr/bin/{name}")
    return runner


@pytest.fixture()
def dispatcher() -> Dispatcher:
    return Dispatcher(GhopsSettings())


@pytest.fixture()
def fake_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    (repo / ".git").mkdir(parents=True)
    return repo


@pytest.fixture()
def git_repo(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test Author")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "author@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test Author")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "author@example.com")
    for key in ("GIT_DIR", "GIT_WORK_TREE", "GIT_INDEX_FILE"):
        monkeypatch.delenv(key, raising=False)

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    write(repo / "a.txt", "one\n")
    write(repo / "b.txt", "base\n")
    git(repo, "add", "-A")
    git(repo, "commit", "-q", "-m", "first")
    return repo
