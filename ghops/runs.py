"""Workflow runs: list, prune and read logs."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .commands import Operation, build_command
from .dispatcher import CommandResult, Dispatcher, resolve_dispatcher
from .errors import OperationalError

logger = logging.getLogger(__name__)


class WorkflowRun(BaseModel):
    """One entry of ``gh run list --json``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int = Field(alias="databaseId")
    title: str = Field(default="", alias="displayTitle")
    workflow: str = Field(default="", alias="workflowName")
    status: str = ""
    conclusion: str = ""
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


def list_runs(
    repo_dir: str | Path,
    *,
    limit: Optional[int] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> List[WorkflowRun]:
    """Return workflow runs, newest first."""

    runner = resolve_dispatcher(dispatcher)
    spec = build_command(
        Operation.GH_RUN_LIST,
        cwd=repo_dir,
        limit=limit if limit is not None else runner.settings.run_list_limit,
    )
    result = runner.run(spec)
    payload = result.stdout.strip() or "[]"
    try:
        entries = json.loads(payload)
        return [WorkflowRun.model_validate(entry) for entry in entries]
    except (json.JSONDecodeError, TypeError, ValidationError) as exc:
        raise OperationalError(f"Unexpected output from `{result.display}`: {exc}", result) from exc


def list_run_ids(
    repo_dir: str | Path,
    *,
    limit: Optional[int] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> List[int]:
    return [run.id for run in list_runs(repo_dir, limit=limit, dispatcher=dispatcher)]


def remove_run(repo_dir: str | Path, run_id: int | str, *, dispatcher: Optional[Dispatcher] = None) -> CommandResult:
    spec = build_command(Operation.GH_RUN_DELETE, cwd=repo_dir, run_id=run_id)
    return resolve_dispatcher(dispatcher).run(spec)


def remove_runs(
    repo_dir: str | Path,
    keep_newest: int = 0,
    run_ids: Optional[Sequence[int | str]] = None,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> List[CommandResult]:
    """Delete workflow runs, sparing the ``keep_newest`` most recent ones.

    ``run_ids`` must be ordered newest first, as ``gh run list`` returns them.
    """

    runner = resolve_dispatcher(dispatcher)
    ids = list(run_ids) if run_ids is not None else list_run_ids(repo_dir, dispatcher=runner)
    if keep_newest > 0:
        if len(ids) <= keep_newest:
            logger.info("Only %s workflow run(s) in %s; nothing to remove", len(ids), repo_dir)
            return []
        ids = ids[keep_newest:]

    logger.info("Removing %s workflow run(s) from %s", len(ids), repo_dir)
    return [remove_run(repo_dir, run_id, dispatcher=runner) for run_id in ids]


def remove_previous_runs(
    repo_dir: str | Path,
    keep_newest: int = 1,
    *,
    dispatcher: Optional[Dispatcher] = None,
) -> List[CommandResult]:
    return remove_runs(repo_dir, keep_newest=keep_newest, dispatcher=dispatcher)


def run_log(repo_dir: str | Path, run_id: int | str, *, dispatcher: Optional[Dispatcher] = None) -> List[str]:
    spec = build_command(Operation.GH_RUN_VIEW_LOG, cwd=repo_dir, run_id=run_id)
    return resolve_dispatcher(dispatcher).run(spec).lines


__all__ = [
    "WorkflowRun",
    "list_run_ids",
    "list_runs",
    "remove_previous_runs",
    "remove_run",
    "remove_runs",
    "run_log",
]
