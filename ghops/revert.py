"""Revert a repository to an earlier commit.

Two mutually exclusive modes:

``just``
    Restore only the listed files from the target commit and record the
    restoration as a new commit.  History is not rewritten.

``keep``
    Hard-reset the branch to the target commit, then put back the current
    content of the listed files and commit them on top.  The reset discards
    local changes and moves the branch pointer; push anything you need first.

All validation (mode exclusivity, path checks, commit lookup, presence of the
files) happens before the first command that changes the repository.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import List, Optional, Sequence

from .commands import Operation, build_command
from .dispatcher import CommandResult, Dispatcher, resolve_dispatcher
from .errors import ConfigurationError, GhopsError, NotFoundError, OperationalError
from .git import has_changes, head_commit, resolve_commit

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RevertRequest:
    commit: str
    keep: Sequence[str] = ()
    just: Sequence[str] = ()
    message: Optional[str] = None

    @property
    def mode(self) -> str:
        return "just" if self.just else "keep"

    def validate(self) -> None:
        if not str(self.commit or "").strip():
            raise ConfigurationError("Revert requires a commit identifier")
        if self.keep and self.just:
            raise ConfigurationError("'keep' and 'just' are mutually exclusive; pass only one of them")

    def commit_message(self) -> str:
        if self.message:
            return self.message
        if self.just:
            return f"Restore {', '.join(self.just)} from {self.commit}"
        return f"Revert to {self.commit}"


@dataclass(slots=True)
class RevertResult:
    mode: str
    commit: str
    files: List[str]
    head: Optional[str] = None
    committed: bool = False
    results: List[CommandResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "mode": self.mode,
            "commit": self.commit,
            "files": self.files,
            "head": self.head,
            "committed": self.committed,
            "commands": [result.to_dict() for result in self.results],
        }


def revert_commit(
    repo_dir: str | Path,
    request: RevertRequest,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> RevertResult:
    request.validate()
    runner = resolve_dispatcher(dispatcher)
    root = Path(repo_dir).resolve()
    if request.just:
        return _restore_files(root, request, runner)
    return _reset_keeping_files(root, request, runner)


def git_revert(
    repo_dir: str | Path,
    commit: str,
    *,
    keep: Optional[Sequence[str]] = None,
    just: Optional[Sequence[str]] = None,
    msg: Optional[str] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> RevertResult:
    request = RevertRequest(commit=commit, keep=tuple(keep or ()), just=tuple(just or ()), message=msg)
    return revert_commit(repo_dir, request, dispatcher=dispatcher)


def _restore_files(root: Path, request: RevertRequest, runner: Dispatcher) -> RevertResult:
    paths = [_relative_path(root, item) for item in request.just]
    sha = resolve_commit(root, request.commit, dispatcher=runner)
    for path in paths:
        probe = build_command(Operation.GIT_OBJECT_EXISTS, cwd=root, commit=sha, path=path)
        if not runner.run(probe, check=False).ok:
            raise NotFoundError(f"'{path}' does not exist in commit {request.commit}")

    results = [
        runner.run(build_command(Operation.GIT_CHECKOUT_PATHS, cwd=root, commit=sha, paths=paths)),
        runner.run(build_command(Operation.GIT_ADD_ALL, cwd=root)),
        runner.run(
            build_command(Operation.GIT_COMMIT, cwd=root, message=request.commit_message(), allow_empty=True)
        ),
    ]
    return RevertResult(
        mode="just",
        commit=sha,
        files=paths,
        head=head_commit(root, dispatcher=runner),
        committed=True,
        results=results,
    )


def _reset_keeping_files(root: Path, request: RevertRequest, runner: Dispatcher) -> RevertResult:
    paths = [_relative_path(root, item) for item in request.keep]
    missing = [path for path in paths if not (root / path).exists()]
    if missing:
        raise NotFoundError(f"Cannot keep missing file(s): {', '.join(missing)}")
    sha = resolve_commit(root, request.commit, dispatcher=runner)

    results: List[CommandResult] = []
    holding_root = Path(tempfile.mkdtemp(prefix="ghops-keep-"))
    try:
        for path in paths:
            _copy(root / path, holding_root / path)
    except OSError as exc:
        shutil.rmtree(holding_root, ignore_errors=True)
        raise OperationalError(
            f"Could not snapshot kept files before resetting to {request.commit}: {exc}"
        ) from exc

    # The snapshot is removed only once every kept path is restored.
    try:
        results.append(runner.run(build_command(Operation.GIT_RESET_HARD, cwd=root, commit=sha)))
        for path in paths:
            _clear_file_ancestors(root, path)
            _copy(holding_root / path, root / path)
    except OSError as exc:
        raise OperationalError(
            f"Could not restore kept files after resetting to {request.commit}: {exc}. "
            f"Copies are kept in {holding_root}"
        ) from exc
    except GhopsError:
        logger.error("Reset to %s failed; kept files are preserved in %s", request.commit, holding_root)
        raise
    shutil.rmtree(holding_root, ignore_errors=True)

    committed = False
    if paths:
        results.append(runner.run(build_command(Operation.GIT_ADD_ALL, cwd=root)))
        if has_changes(root, dispatcher=runner):
            spec = build_command(Operation.GIT_COMMIT, cwd=root, message=request.commit_message())
            results.append(runner.run(spec))
            committed = True
        else:
            logger.info("Kept files match %s; no revert commit needed", request.commit)

    return RevertResult(
        mode="keep",
        commit=sha,
        files=paths,
        head=head_commit(root, dispatcher=runner),
        committed=committed,
        results=results,
    )


def _relative_path(root: Path, value: str) -> str:
    candidate = Path(value)
    absolute = candidate if candidate.is_absolute() else root / candidate
    resolved = absolute.resolve()
    try:
        relative = resolved.relative_to(root)
    except ValueError as exc:
        raise ConfigurationError(f"Path '{value}' is outside the repository {root}") from exc
    if not relative.parts:
        raise ConfigurationError(f"Path '{value}' refers to the repository root")
    return PurePosixPath(*relative.parts).as_posix()


def _clear_file_ancestors(root: Path, relative: str) -> None:
    """Remove non-directories the reset left where ``relative`` needs a parent directory."""

    current = root
    for part in PurePosixPath(relative).parts[:-1]:
        current = current / part
        if current.is_symlink() or (current.exists() and not current.is_dir()):
            current.unlink()


def _copy(source: Path, destination: Path) -> None:
    # Whatever sits at the destination is replaced, whether file or directory.
    if destination.is_dir() and not destination.is_symlink():
        shutil.rmtree(destination)
    elif destination.exists() or destination.is_symlink():
        destination.unlink()
    destination.parent.mkdir(parents=True, exist_ok=True)
    if source.is_dir():
        shutil.copytree(source, destination)
    else:
        shutil.copy2(source, destination)


__all__ = ["RevertRequest", "RevertResult", "git_revert", "revert_commit"]
