from __future__ import annotations

import json
from pathlib import Path

import pytest

from ghops.dispatcher import Dispatcher
from ghops.errors import ConfigurationError, OperationalError
from ghops.runs import list_run_ids, list_runs, remove_previous_runs, remove_runs, run_log

RUNS = [
    {
        "databaseId": 303,
        "displayTitle": "Publish episode 3",
        "workflowName": "pages",
        "status": "completed",
        "conclusion": "success",
        "createdAt": "2024-05-03T10:00:00Z",
    },
    {
        "databaseId": 202,
        "displayTitle": "Publish episode 2",
        "workflowName": "pages",
        "status": "completed",
        "conclusion": "failure",
        "createdAt": "2024-05-02T10:00:00Z",
    },
    {
        "databaseId": 101,
        "displayTitle": "Publish episode 1",
        "workflowName": "pages",
        "status": "completed",
        "conclusion": "success",
        "createdAt": "2024-05-01T10:00:00Z",
    },
]


def test_list_runs_parses_json(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    fake_runner.queue(0, json.dumps(RUNS))

    runs = list_runs(fake_repo, dispatcher=dispatcher)

    assert [run.id for run in runs] == [303, 202, 101]
    assert runs[1].conclusion == "failure"
    assert runs[0].title == "Publish episode 3"
    assert runs[0].created_at is not None and runs[0].created_at.day == 3
    assert fake_runner.args[0][:4] == ["run", "list", "--limit", "1000"]


def test_list_runs_empty_output(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    fake_runner.queue(0, "")

    assert list_run_ids(fake_repo, dispatcher=dispatcher) == []


def test_list_runs_rejects_unexpected_output(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    fake_runner.queue(0, "no runs found")

    with pytest.raises(OperationalError):
        list_runs(fake_repo, dispatcher=dispatcher)


def test_remove_runs_keeps_newest(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    fake_runner.queue(0, json.dumps(RUNS))

    results = remove_runs(fake_repo, keep_newest=1, dispatcher=dispatcher)

    assert len(results) == 2
    assert fake_runner.args[1:] == [["run", "delete", "202"], ["run", "delete", "101"]]


def test_remove_runs_with_too_few_runs_does_nothing(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    assert remove_runs(fake_repo, keep_newest=3, run_ids=[3, 2, 1], dispatcher=dispatcher) == []
    assert fake_runner.calls == []


def test_remove_runs_with_explicit_ids(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    remove_runs(fake_repo, run_ids=[7, "8"], dispatcher=dispatcher)

    assert fake_runner.args == [["run", "delete", "7"], ["run", "delete", "8"]]


def test_remove_previous_runs_keeps_one(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    fake_runner.queue(0, json.dumps(RUNS[:2]))

    remove_previous_runs(fake_repo, dispatcher=dispatcher)

    assert fake_runner.args[1:] == [["run", "delete", "202"]]


def test_run_log_returns_lines(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    fake_runner.queue(0, "build\tStep 1\nbuild\tStep 2\n")

    assert run_log(fake_repo, 303, dispatcher=dispatcher) == ["build\tStep 1", "build\tStep 2"]
    assert fake_runner.args == [["run", "view", "303", "--log"]]


def test_run_ids_are_validated(fake_runner, dispatcher: Dispatcher, fake_repo: Path) -> None:
    with pytest.raises(ConfigurationError):
        run_log(fake_repo, "--web", dispatcher=dispatcher)

    assert fake_runner.calls == []
