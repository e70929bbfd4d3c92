"""Version-control helpers: commit, push, history rewrite and commit lookups."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from .commands import Operation, build_command
from .dispatcher import CommandResult, Dispatcher, resolve_dispatcher
from .errors import NotFoundError

logger = logging.getLogger(__name__)

ORPHAN_BRANCH = "temp_latest_branch"


def resolve_commit(repo_dir: str | Path, commit: str, *, dispatcher: Optional[Dispatcher] = None) -> str:
    """Return the full hash ``commit`` points to, or raise :class:`NotFoundError`."""

    runner = resolve_dispatcher(dispatcher)
    result = runner.run(build_command(Operation.GIT_REV_PARSE, cwd=repo_dir, commit=commit), check=False)
    sha = result.stdout.strip()
    if not result.ok or not sha:
        raise NotFoundError(f"Commit '{commit}' not found in {repo_dir}")
    return sha


def head_commit(repo_dir: str | Path, *, dispatcher: Optional[Dispatcher] = None) -> str:
    return resolve_commit(repo_dir, "HEAD", dispatcher=dispatcher)


def has_changes(repo_dir: str | Path, *, dispatcher: Optional[Dispatcher] = None) -> bool:
    result = resolve_dispatcher(dispatcher).run(build_command(Operation.GIT_STATUS, cwd=repo_dir))
    return bool(result.stdout.strip())


def commit_all(
    repo_dir: str | Path,
    msg: str = "update",
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> List[CommandResult]:
    """Stage everything and commit; the commit is skipped on a clean tree."""

    runner = resolve_dispatcher(dispatcher)
    results = [runner.run(build_command(Operation.GIT_ADD_ALL, cwd=repo_dir))]
    if not has_changes(repo_dir, dispatcher=runner):
        logger.info("Nothing to commit in %s", repo_dir)
        return results
    results.append(runner.run(build_command(Operation.GIT_COMMIT, cwd=repo_dir, message=msg)))
    return results


def push(
    repo_dir: str | Path,
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    *,
    force: bool = False,
    dispatcher: Optional[Dispatcher] = None,
) -> CommandResult:
    runner = resolve_dispatcher(dispatcher)
    spec = build_command(
        Operation.GIT_PUSH,
        cwd=repo_dir,
        remote=remote or runner.settings.remote,
        branch=branch or runner.settings.branch,
        force=force,
    )
    return runner.run(spec)


def update(
    repo_dir: str | Path,
    msg: str = "update",
    remote: Optional[str] = None,
    branch: Optional[str] = None,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> List[CommandResult]:
    """Commit all local changes and push them to the hosting remote."""

    runner = resolve_dispatcher(dispatcher)
    results = commit_all(repo_dir, msg, dispatcher=runner)
    results.append(push(repo_dir, remote, branch, dispatcher=runner))
    return results


def remove_history(
    repo_dir: str | Path,
    branch: Optional[str] = None,
    remote: Optional[str] = None,
    *,
    push_changes: bool = True,
    dispatcher: Optional[Dispatcher] = None,
) -> List[CommandResult]:
    """Replace ``branch`` with a single commit holding the current files.

    Every older commit on the branch is dropped and the result is force-pushed.
    Never use this on a repository other people work with.
    """

    runner = resolve_dispatcher(dispatcher)
    branch = branch or runner.settings.branch
    steps = [
        build_command(Operation.GIT_CHECKOUT_ORPHAN, cwd=repo_dir, branch=ORPHAN_BRANCH),
        build_command(Operation.GIT_ADD_ALL, cwd=repo_dir),
        build_command(Operation.GIT_COMMIT, cwd=repo_dir, message="restart"),
        build_command(Operation.GIT_BRANCH_DELETE, cwd=repo_dir, branch=branch),
        build_command(Operation.GIT_BRANCH_RENAME, cwd=repo_dir, branch=branch),
    ]
    results = [runner.run(spec) for spec in steps]
    if push_changes:
        results.append(push(repo_dir, remote, branch, force=True, dispatcher=runner))
    return results


__all__ = [
    "commit_all",
    "has_changes",
    "head_commit",
    "push",
    "remove_history",
    "resolve_commit",
    "update",
]
