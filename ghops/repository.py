"""Repository-level hosting operations: secrets, create and clone."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .commands import Operation, build_command
from .dispatcher import CommandResult, Dispatcher, resolve_dispatcher
from .errors import ConfigurationError, NotFoundError
from .secrets import resolve_secret_info

logger = logging.getLogger(__name__)


def set_secret(
    repo_dir: str | Path,
    name: str,
    value: Optional[str] = None,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> CommandResult:
    """Set a repository secret.

    When ``value`` is omitted it is looked up through the registered secret
    resolvers (environment, dotenv files).  The value reaches ``gh`` on stdin
    and is masked in everything returned, logged or echoed.
    """

    if value is None:
        info = resolve_secret_info(name)
        if info.value is None:
            checked = ", ".join(attempt.source for attempt in info.attempts) or "none"
            raise NotFoundError(f"No value given for secret '{name}' and none resolved (checked: {checked})")
        value = info.value
    if not value:
        raise ConfigurationError(f"Secret '{name}' must not be empty")

    spec = build_command(Operation.GH_SECRET_SET, cwd=repo_dir, name=name, input_text=value)
    return resolve_dispatcher(dispatcher).run(spec, redact_values=[value])


def remove_secret(repo_dir: str | Path, name: str, *, dispatcher: Optional[Dispatcher] = None) -> CommandResult:
    spec = build_command(Operation.GH_SECRET_DELETE, cwd=repo_dir, name=name)
    return resolve_dispatcher(dispatcher).run(spec)


def new_repo(
    reponame: str,
    parent_dir: str | Path,
    access: str = "private",
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> CommandResult:
    """Create a repository on the host and clone it below ``parent_dir``."""

    spec = build_command(Operation.GH_REPO_CREATE, cwd=parent_dir, name=reponame, access=access)
    result = resolve_dispatcher(dispatcher).run(spec)
    logger.info("Local repository at %s", Path(parent_dir) / reponame)
    return result


def clone(
    repo: str,
    repo_dir: str | Path,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> Optional[CommandResult]:
    """Clone ``repo`` ("owner/name" or URL) into ``repo_dir``.

    Returns ``None`` without running anything when ``repo_dir`` already exists.
    """

    target = Path(repo_dir)
    if target.exists():
        logger.info("%s already exists; skipping clone", target)
        return None
    spec = build_command(Operation.GH_REPO_CLONE, repo=repo, directory=str(target))
    return resolve_dispatcher(dispatcher).run(spec)


__all__ = ["clone", "new_repo", "remove_secret", "set_secret"]
