"""Scriptable wrappers around the git and gh command-line tools."""

__version__ = "0.1.0"
from .commands import CommandSpec, Operation, Tool, build_command
from .config import GhopsSettings, load_settings
from .dispatcher import CommandResult, Dispatcher, run_command, working_directory
from .errors import (
    ConfigurationError,
    GhopsError,
    NotFoundError,
    OperationalError,
    ToolEnvironmentError,
)
from .filenames import normalize_file_names
from .git import commit_all, push, remove_history, update
from .releases import (
    ReleaseRemoval,
    has_release,
    list_releases,
    remove_binary_file,
    upload_assets,
    upload_binary_file,
)
from .repository import clone, new_repo, remove_secret, set_secret
from .revert import RevertRequest, RevertResult, git_revert, revert_commit
from .runs import WorkflowRun, list_run_ids, list_runs, remove_previous_runs, remove_run, remove_runs, run_log
from .session import SessionContext, auth_status, login

__all__ = [
    "__version__",
    "CommandResult",
    "CommandSpec",
    "ConfigurationError",
    "Dispatcher",
    "GhopsError",
    "GhopsSettings",
    "NotFoundError",
    "Operation",
    "OperationalError",
    "ReleaseRemoval",
    "RevertRequest",
    "RevertResult",
    "SessionContext",
    "Tool",
    "ToolEnvironmentError",
    "WorkflowRun",
    "auth_status",
    "build_command",
    "clone",
    "commit_all",
    "git_revert",
    "has_release",
    "list_releases",
    "list_run_ids",
    "list_runs",
    "load_settings",
    "login",
    "new_repo",
    "normalize_file_names",
    "push",
    "remove_binary_file",
    "remove_history",
    "remove_previous_runs",
    "remove_run",
    "remove_runs",
    "remove_secret",
    "revert_commit",
    "run_command",
    "run_log",
    "set_secret",
    "update",
    "upload_assets",
    "upload_binary_file",
    "working_directory",
]
