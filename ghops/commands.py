"""Typed builder for every external command ghops can run.

Each :class:`Operation` maps to one argument template registered with
:func:`_template`.  Templates validate user-supplied values before they become
tokens, so a tag, branch or file name can never be read by the external tool
as one of its own flags.  Commands are always executed as argument vectors,
never through a shell.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import ConfigurationError


class Tool(str, Enum):
    GIT = "git"
    GH = "gh"


class Operation(str, Enum):
    GIT_ADD_ALL = "git.add-all"
    GIT_COMMIT = "git.commit"
    GIT_PUSH = "git.push"
    GIT_DELETE_REMOTE_TAG = "git.delete-remote-tag"
    GIT_RESET_HARD = "git.reset-hard"
    GIT_CHECKOUT_PATHS = "git.checkout-paths"
    GIT_CHECKOUT_ORPHAN = "git.checkout-orphan"
    GIT_BRANCH_DELETE = "git.branch-delete"
    GIT_BRANCH_RENAME = "git.branch-rename"
    GIT_STATUS = "git.status"
    GIT_REV_PARSE = "git.rev-parse"
    GIT_OBJECT_EXISTS = "git.object-exists"
    GIT_CONFIG_GLOBAL = "git.config-global"
    GH_RELEASE_CREATE = "gh.release-create"
    GH_RELEASE_UPLOAD = "gh.release-upload"
    GH_RELEASE_DELETE = "gh.release-delete"
    GH_RELEASE_LIST = "gh.release-list"
    GH_RUN_LIST = "gh.run-list"
    GH_RUN_DELETE = "gh.run-delete"
    GH_RUN_VIEW_LOG = "gh.run-view-log"
    GH_SECRET_SET = "gh.secret-set"
    GH_SECRET_DELETE = "gh.secret-delete"
    GH_AUTH_LOGIN = "gh.auth-login"
    GH_AUTH_SETUP_GIT = "gh.auth-setup-git"
    GH_AUTH_STATUS = "gh.auth-status"
    GH_REPO_CREATE = "gh.repo-create"
    GH_REPO_CLONE = "gh.repo-clone"


@dataclass(frozen=True, slots=True)
class CommandSpec:
    """One external command: tool, argument tokens and where to run it."""

    tool: Tool
    args: Tuple[str, ...]
    cwd: Optional[Path] = None
    requires_repository: bool = False
    input_text: Optional[str] = field(default=None, repr=False)

    @property
    def tokens(self) -> Tuple[str, ...]:
        return (self.tool.value, *self.args)

    @property
    def display(self) -> str:
        return shlex.join(self.tokens)


@dataclass(frozen=True, slots=True)
class _TemplateEntry:
    tool: Tool
    build: Callable[..., List[str]]
    requires_repository: bool


_TEMPLATES: Dict[Operation, _TemplateEntry] = {}

_SECRET_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_REPO_ACCESS = ("public", "private", "internal")
RUN_LIST_FIELDS = ("databaseId", "displayTitle", "workflowName", "status", "conclusion", "createdAt")


def _template(operation: Operation, tool: Tool, *, requires_repository: bool = True):
    def decorator(func: Callable[..., List[str]]) -> Callable[..., List[str]]:
        _TEMPLATES[operation] = _TemplateEntry(tool=tool, build=func, requires_repository=requires_repository)
        return func

    return decorator


def build_command(
    operation: Operation,
    *,
    cwd: str | Path | None = None,
    input_text: Optional[str] = None,
    requires_repository: Optional[bool] = None,
    **params: object,
) -> CommandSpec:
    """Render ``operation`` with ``params`` into a :class:`CommandSpec`."""

    entry = _TEMPLATES.get(operation)
    if entry is None:  # pragma: no cover - every member is registered below
        raise ConfigurationError(f"No command template registered for {operation.value}")
    try:
        args = entry.build(**params)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid parameters for {operation.value}: {exc}") from exc
    return CommandSpec(
        tool=entry.tool,
        args=tuple(args),
        cwd=Path(cwd) if cwd is not None else None,
        requires_repository=entry.requires_repository if requires_repository is None else requires_repository,
        input_text=input_text,
    )


def supported_operations() -> List[Operation]:
    return list(_TEMPLATES)


# ----------------------------------------------------------------------
# Value validation
# ----------------------------------------------------------------------


def _text(value: object, label: str) -> str:
    text = str(value)
    if "\x00" in text:
        raise ConfigurationError(f"{label} must not contain NUL characters")
    return text


def _value(value: object, label: str) -> str:
    text = _text(value, label).strip() if value is not None else ""
    if not text:
        raise ConfigurationError(f"{label} must be a non-empty string")
    if text.startswith("-"):
        raise ConfigurationError(f"{label} must not start with '-': {text!r}")
    return text


def _path(value: object, label: str) -> str:
    text = _text(value, label) if value is not None else ""
    if not text:
        raise ConfigurationError(f"{label} must be a non-empty path")
    if text.startswith("-"):
        text = f"./{text}"
    return text


def _paths(values: Iterable[object], label: str) -> List[str]:
    items = [_path(value, label) for value in values]
    if not items:
        raise ConfigurationError(f"{label} requires at least one path")
    return items


def _positive(value: object, label: str) -> str:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{label} must be an integer (got {value!r})") from exc
    if number < 1:
        raise ConfigurationError(f"{label} must be positive (got {number})")
    return str(number)


def _run_id(value: object) -> str:
    text = str(value).strip()
    if not text.isdigit():
        raise ConfigurationError(f"Workflow run id must be numeric (got {value!r})")
    return text


# ----------------------------------------------------------------------
# git
# ----------------------------------------------------------------------


@_template(Operation.GIT_ADD_ALL, Tool.GIT)
def _git_add_all() -> List[str]:
    return ["add", "-A"]


@_template(Operation.GIT_COMMIT, Tool.GIT)
def _git_commit(message: str, allow_empty: bool = False) -> List[str]:
    if not str(message).strip():
        raise ConfigurationError("Commit message must be a non-empty string")
    args = ["commit", "-m", _text(message, "Commit message")]
    if allow_empty:
        args.append("--allow-empty")
    return args


@_template(Operation.GIT_PUSH, Tool.GIT)
def _git_push(remote: str, branch: str, force: bool = False) -> List[str]:
    args = ["push"]
    if force:
        args.append("-f")
    args.extend([_value(remote, "Remote"), _value(branch, "Branch")])
    return args


@_template(Operation.GIT_DELETE_REMOTE_TAG, Tool.GIT)
def _git_delete_remote_tag(remote: str, tag: str) -> List[str]:
    return ["push", _value(remote, "Remote"), "--delete", f"refs/tags/{_value(tag, 'Tag')}"]


@_template(Operation.GIT_RESET_HARD, Tool.GIT)
def _git_reset_hard(commit: str) -> List[str]:
    return ["reset", "--hard", _value(commit, "Commit")]


@_template(Operation.GIT_CHECKOUT_PATHS, Tool.GIT)
def _git_checkout_paths(commit: str, paths: Sequence[str]) -> List[str]:
    return ["checkout", _value(commit, "Commit"), "--", *_paths(paths, "Checkout path")]


@_template(Operation.GIT_CHECKOUT_ORPHAN, Tool.GIT)
def _git_checkout_orphan(branch: str) -> List[str]:
    return ["checkout", "--orphan", _value(branch, "Branch")]


@_template(Operation.GIT_BRANCH_DELETE, Tool.GIT)
def _git_branch_delete(branch: str) -> List[str]:
    return ["branch", "-D", _value(branch, "Branch")]


@_template(Operation.GIT_BRANCH_RENAME, Tool.GIT)
def _git_branch_rename(branch: str) -> List[str]:
    return ["branch", "-m", _value(branch, "Branch")]


@_template(Operation.GIT_STATUS, Tool.GIT)
def _git_status() -> List[str]:
    return ["status", "--porcelain"]


@_template(Operation.GIT_REV_PARSE, Tool.GIT)
def _git_rev_parse(commit: str) -> List[str]:
    return ["rev-parse", "--verify", "--quiet", f"{_value(commit, 'Commit')}^{{commit}}"]


@_template(Operation.GIT_OBJECT_EXISTS, Tool.GIT)
def _git_object_exists(commit: str, path: str) -> List[str]:
    return ["cat-file", "-e", f"{_value(commit, 'Commit')}:{_text(path, 'Path')}"]


@_template(Operation.GIT_CONFIG_GLOBAL, Tool.GIT, requires_repository=False)
def _git_config_global(key: str, value: str) -> List[str]:
    return ["config", "--global", _value(key, "Config key"), _text(value, "Config value")]


# ----------------------------------------------------------------------
# gh release
# ----------------------------------------------------------------------


@_template(Operation.GH_RELEASE_CREATE, Tool.GH)
def _gh_release_create(
    tag: str,
    files: Sequence[str] = (),
    title: Optional[str] = None,
    notes: str = "",
    target: str = "main",
    prerelease: bool = False,
    draft: bool = False,
) -> List[str]:
    args = ["release", "create", _value(tag, "Tag")]
    args.extend(_path(item, "Asset") for item in files)
    if title is not None:
        args.extend(["--title", _text(title, "Title")])
    args.extend(["--notes", _text(notes or "", "Notes")])
    if target != "main":
        args.extend(["--target", _value(target, "Target")])
    if prerelease:
        args.append("--prerelease")
    if draft:
        args.append("--draft")
    return args


@_template(Operation.GH_RELEASE_UPLOAD, Tool.GH)
def _gh_release_upload(tag: str, files: Sequence[str], clobber: bool = False) -> List[str]:
    args = ["release", "upload", _value(tag, "Tag"), *_paths(files, "Asset")]
    if clobber:
        args.append("--clobber")
    return args


@_template(Operation.GH_RELEASE_DELETE, Tool.GH)
def _gh_release_delete(tag: str, yes: bool = False) -> List[str]:
    args = ["release", "delete", _value(tag, "Tag")]
    if yes:
        args.append("--yes")
    return args


@_template(Operation.GH_RELEASE_LIST, Tool.GH)
def _gh_release_list(limit: int = 100, owner_repo: Optional[str] = None) -> List[str]:
    args = [
        "release",
        "list",
        "--limit",
        _positive(limit, "Release limit"),
        "--json",
        "tagName",
        "--jq",
        ".[].tagName",
    ]
    if owner_repo:
        args.extend(["-R", _value(owner_repo, "Repository")])
    return args


# ----------------------------------------------------------------------
# gh run
# ----------------------------------------------------------------------


@_template(Operation.GH_RUN_LIST, Tool.GH)
def _gh_run_list(limit: int = 1000) -> List[str]:
    return ["run", "list", "--limit", _positive(limit, "Run limit"), "--json", ",".join(RUN_LIST_FIELDS)]


@_template(Operation.GH_RUN_DELETE, Tool.GH)
def _gh_run_delete(run_id: object) -> List[str]:
    return ["run", "delete", _run_id(run_id)]


@_template(Operation.GH_RUN_VIEW_LOG, Tool.GH)
def _gh_run_view_log(run_id: object) -> List[str]:
    return ["run", "view", _run_id(run_id), "--log"]


# ----------------------------------------------------------------------
# gh secret / auth / repo
# ----------------------------------------------------------------------


def _secret_name(name: str) -> str:
    text = str(name or "").strip()
    if not _SECRET_NAME.match(text):
        raise ConfigurationError(f"Invalid secret name {name!r}")
    return text


@_template(Operation.GH_SECRET_SET, Tool.GH)
def _gh_secret_set(name: str) -> List[str]:
    # Value is supplied on stdin.
    return ["secret", "set", _secret_name(name)]


@_template(Operation.GH_SECRET_DELETE, Tool.GH)
def _gh_secret_delete(name: str) -> List[str]:
    return ["secret", "delete", _secret_name(name)]


@_template(Operation.GH_AUTH_LOGIN, Tool.GH, requires_repository=False)
def _gh_auth_login(hostname: str = "github.com", with_token: bool = False) -> List[str]:
    args = ["auth", "login", "--hostname", _value(hostname, "Hostname"), "--git-protocol", "https"]
    if with_token:
        args.append("--with-token")
    return args


@_template(Operation.GH_AUTH_SETUP_GIT, Tool.GH, requires_repository=False)
def _gh_auth_setup_git(hostname: str = "github.com") -> List[str]:
    return ["auth", "setup-git", "--hostname", _value(hostname, "Hostname")]


@_template(Operation.GH_AUTH_STATUS, Tool.GH, requires_repository=False)
def _gh_auth_status(hostname: str = "github.com") -> List[str]:
    return ["auth", "status", "--hostname", _value(hostname, "Hostname")]


@_template(Operation.GH_REPO_CREATE, Tool.GH, requires_repository=False)
def _gh_repo_create(name: str, access: str = "private", clone: bool = True) -> List[str]:
    if access not in _REPO_ACCESS:
        raise ConfigurationError(f"Repository access must be one of {', '.join(_REPO_ACCESS)} (got {access!r})")
    args = ["repo", "create", _value(name, "Repository name"), f"--{access}"]
    if clone:
        args.append("--clone")
    return args


@_template(Operation.GH_REPO_CLONE, Tool.GH, requires_repository=False)
def _gh_repo_clone(repo: str, directory: Optional[str] = None) -> List[str]:
    args = ["repo", "clone", _value(repo, "Repository")]
    if directory is not None:
        args.append(_path(directory, "Clone directory"))
    return args


__all__ = [
    "CommandSpec",
    "Operation",
    "RUN_LIST_FIELDS",
    "Tool",
    "build_command",
    "supported_operations",
]
