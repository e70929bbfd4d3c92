"""Command-line entry point for ghops."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from . import __version__
from .config import load_settings
from .dispatcher import CommandResult, Dispatcher
from .errors import ConfigurationError, GhopsError
from .filenames import normalize_file_names
from .git import commit_all, push, remove_history, update
from .releases import has_release, list_releases, remove_binary_file, upload_assets, upload_binary_file
from .repository import clone, new_repo, remove_secret, set_secret
from .revert import RevertRequest, revert_commit
from .runs import list_runs, remove_runs, run_log
from .secrets import describe_secret, use_dotenv
from .session import SessionContext, auth_status, login

Handler = Callable[[argparse.Namespace, Dispatcher], Mapping[str, object]]


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handler = _HANDLERS.get((args.command, getattr(args, "action", None)))
    if handler is None:  # pragma: no cover - argparse enforces subcommands
        parser.error(f"Unknown command '{args.command}'")
        return 1

    try:
        dispatcher = _build_dispatcher(args)
        payload = handler(args, dispatcher)
    except GhopsError as exc:
        _print_json({"status": "error", **exc.to_dict()})
        return 1
    _print_json({"status": "ok", **payload})
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ghops", description="Script git and gh repository chores.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="YAML settings file (default: ghops.yaml or $GHOPS_CONFIG).")
    parser.add_argument("--show", action=argparse.BooleanOptionalAction, default=None, help="Echo commands and output to stderr.")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", required=True)

    release = subparsers.add_parser("release", help="Hosted releases.")
    release_sub = release.add_subparsers(dest="action", required=True)

    create = release_sub.add_parser("create", help="Upload a binary file as its own release.")
    _add_repo_dir(create)
    create.add_argument("--tag", required=True)
    create.add_argument("--file", required=True)
    create.add_argument("--title")
    create.add_argument("--notes", default="")
    create.add_argument("--target", default="main")
    create.add_argument("--prerelease", action="store_true")
    create.add_argument("--draft", action="store_true")
    create.add_argument("--overwrite", action="store_true")

    upload = release_sub.add_parser("upload", help="Attach assets to an existing release.")
    _add_repo_dir(upload)
    upload.add_argument("--tag", required=True)
    upload.add_argument("--file", action="append", required=True, help="Asset path (repeatable).")
    upload.add_argument("--clobber", action="store_true")

    delete = release_sub.add_parser("delete", help="Delete a release and its tag.")
    _add_repo_dir(delete)
    delete.add_argument("--tag", required=True)
    delete.add_argument("--yes", action="store_true")

    listing = release_sub.add_parser("list", help="List release tags.")
    listing.add_argument("--repo-dir")
    listing.add_argument("--owner-repo")
    listing.add_argument("--limit", type=int)

    exists = release_sub.add_parser("exists", help="Check whether a release exists.")
    exists.add_argument("--tag", required=True)
    exists.add_argument("--repo-dir")
    exists.add_argument("--owner-repo")

    normalize = release_sub.add_parser("normalize", help="Normalise asset file names.")
    normalize.add_argument("files", nargs="+")
    normalize.add_argument("--dry-run", action="store_true")
    normalize.add_argument("--lower", action="store_true")
    normalize.add_argument("--sep", default="_")

    run = subparsers.add_parser("run", help="Workflow runs.")
    run_sub = run.add_subparsers(dest="action", required=True)
    run_list = run_sub.add_parser("list", help="List workflow runs.")
    _add_repo_dir(run_list)
    run_list.add_argument("--limit", type=int)
    run_delete = run_sub.add_parser("delete", help="Delete workflow runs.")
    _add_repo_dir(run_delete)
    run_delete.add_argument("--run-id", action="append", help="Run id (repeatable); default: all runs.")
    run_delete.add_argument("--keep-newest", type=int, default=0)
    run_view = run_sub.add_parser("log", help="Show the log of a workflow run.")
    _add_repo_dir(run_view)
    run_view.add_argument("--run-id", required=True)

    secret = subparsers.add_parser("secret", help="Repository secrets.")
    secret_sub = secret.add_subparsers(dest="action", required=True)
    secret_set = secret_sub.add_parser("set", help="Set a secret (value resolved from env/.env if omitted).")
    _add_repo_dir(secret_set)
    secret_set.add_argument("--name", required=True)
    secret_set.add_argument("--value")
    secret_delete = secret_sub.add_parser("delete", help="Delete a secret.")
    _add_repo_dir(secret_delete)
    secret_delete.add_argument("--name", required=True)
    secret_describe = secret_sub.add_parser("describe", help="Show where a secret value would come from.")
    secret_describe.add_argument("--name", required=True)

    revert = subparsers.add_parser("revert", help="Revert the repository to a commit.")
    _add_repo_dir(revert)
    revert.add_argument("--commit", required=True)
    revert.add_argument("--keep", action="append", help="File to preserve across the reset (repeatable).")
    revert.add_argument("--just", action="append", help="File to restore from the commit (repeatable).")
    revert.add_argument("--message")

    git = subparsers.add_parser("git", help="Commit and push helpers.")
    git_sub = git.add_subparsers(dest="action", required=True)
    git_commit = git_sub.add_parser("commit-all", help="Stage and commit everything.")
    _add_repo_dir(git_commit)
    git_commit.add_argument("--message", default="update")
    git_push = git_sub.add_parser("push", help="Push a branch.")
    _add_repo_dir(git_push)
    git_push.add_argument("--remote")
    git_push.add_argument("--branch")
    git_update = git_sub.add_parser("update", help="Commit everything and push.")
    _add_repo_dir(git_update)
    git_update.add_argument("--message", default="update")
    git_update.add_argument("--remote")
    git_update.add_argument("--branch")
    git_history = git_sub.add_parser("remove-history", help="Squash a branch to one commit and force-push.")
    _add_repo_dir(git_history)
    git_history.add_argument("--branch")
    git_history.add_argument("--remote")
    git_history.add_argument("--no-push", action="store_true")
    git_history.add_argument("--yes", action="store_true", help="Confirm the history rewrite.")

    auth = subparsers.add_parser("auth", help="Hosting authentication.")
    auth_sub = auth.add_subparsers(dest="action", required=True)
    auth_login = auth_sub.add_parser("login", help="Log in and configure the git identity.")
    auth_login.add_argument("--email")
    auth_login.add_argument("--username")
    auth_login.add_argument("--hostname", default="github.com")
    auth_status_parser = auth_sub.add_parser("status", help="Show authentication status.")
    auth_status_parser.add_argument("--hostname", default="github.com")

    repo = subparsers.add_parser("repo", help="Create and clone repositories.")
    repo_sub = repo.add_subparsers(dest="action", required=True)
    repo_create = repo_sub.add_parser("create", help="Create a hosted repository and clone it.")
    repo_create.add_argument("--name", required=True)
    repo_create.add_argument("--parent-dir", default=".")
    repo_create.add_argument("--access", choices=["public", "private", "internal"], default="private")
    repo_clone = repo_sub.add_parser("clone", help="Clone a hosted repository.")
    repo_clone.add_argument("--repo", required=True)
    repo_clone.add_argument("--dir", required=True, dest="directory")

    return parser


def _add_repo_dir(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--repo-dir", default=".", help="Local repository root (default: current directory).")


def _build_dispatcher(args: argparse.Namespace) -> Dispatcher:
    _load_local_env()
    settings = load_settings(args.config)
    if settings.dotenv_path is not None:
        use_dotenv(settings.dotenv_path, priority=-5)
    hostname = getattr(args, "hostname", None) or "github.com"
    session = SessionContext(
        hostname=hostname,
        username=getattr(args, "username", None),
        email=getattr(args, "email", None),
    )
    return Dispatcher(settings, session, show=args.show, echo=_echo_stderr)


def _load_local_env() -> None:
    use_dotenv(Path.cwd() / ".env")


def _echo_stderr(text: str) -> None:
    print(text, file=sys.stderr)


# ----------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------


def _handle_release_create(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    result = upload_binary_file(
        args.repo_dir,
        args.tag,
        args.file,
        title=args.title,
        notes=args.notes,
        target=args.target,
        prerelease=args.prerelease,
        draft=args.draft,
        overwrite=args.overwrite,
        dispatcher=dispatcher,
    )
    return result.to_dict()


def _handle_release_upload(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    result = upload_assets(args.repo_dir, args.tag, args.file, clobber=args.clobber, dispatcher=dispatcher)
    return result.to_dict()


def _handle_release_delete(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return remove_binary_file(args.repo_dir, args.tag, yes=args.yes, dispatcher=dispatcher).to_dict()


def _handle_release_list(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    tags = list_releases(args.repo_dir, args.owner_repo, limit=args.limit, dispatcher=dispatcher)
    return {"tags": tags}


def _handle_release_exists(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    exists = has_release(args.tag, args.repo_dir, args.owner_repo, dispatcher=dispatcher)
    return {"tag": args.tag, "exists": exists}


def _handle_release_normalize(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    paths = normalize_file_names(args.files, dry_run=args.dry_run, to_lower=args.lower, sep=args.sep)
    return {"dry_run": args.dry_run, "files": [str(path) for path in paths]}


def _handle_run_list(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    runs = list_runs(args.repo_dir, limit=args.limit, dispatcher=dispatcher)
    return {"runs": [run.model_dump(mode="json") for run in runs]}


def _handle_run_delete(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    results = remove_runs(args.repo_dir, keep_newest=args.keep_newest, run_ids=args.run_id, dispatcher=dispatcher)
    return {"deleted": len(results), **_commands(results)}


def _handle_run_log(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return {"run_id": args.run_id, "lines": run_log(args.repo_dir, args.run_id, dispatcher=dispatcher)}


def _handle_secret_set(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return set_secret(args.repo_dir, args.name, args.value, dispatcher=dispatcher).to_dict()


def _handle_secret_delete(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return remove_secret(args.repo_dir, args.name, dispatcher=dispatcher).to_dict()


def _handle_secret_describe(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return describe_secret(args.name)


def _handle_revert(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    request = RevertRequest(
        commit=args.commit,
        keep=tuple(args.keep or ()),
        just=tuple(args.just or ()),
        message=args.message,
    )
    return revert_commit(args.repo_dir, request, dispatcher=dispatcher).to_dict()


def _handle_git_commit_all(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return _commands(commit_all(args.repo_dir, args.message, dispatcher=dispatcher))


def _handle_git_push(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return push(args.repo_dir, args.remote, args.branch, dispatcher=dispatcher).to_dict()


def _handle_git_update(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    return _commands(update(args.repo_dir, args.message, args.remote, args.branch, dispatcher=dispatcher))


def _handle_git_remove_history(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    if not args.yes:
        raise ConfigurationError("remove-history rewrites the branch and force-pushes; pass --yes to confirm")
    results = remove_history(
        args.repo_dir,
        args.branch,
        args.remote,
        push_changes=not args.no_push,
        dispatcher=dispatcher,
    )
    return _commands(results)


def _handle_auth_login(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    session = dispatcher.session or SessionContext(hostname=args.hostname)
    return _commands(login(session, dispatcher=dispatcher))


def _handle_auth_status(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    result = auth_status(dispatcher.session, dispatcher=dispatcher)
    return {"authenticated": result.ok, **result.to_dict()}


def _handle_repo_create(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    result = new_repo(args.name, args.parent_dir, args.access, dispatcher=dispatcher)
    return {"path": str(Path(args.parent_dir) / args.name), **result.to_dict()}


def _handle_repo_clone(args: argparse.Namespace, dispatcher: Dispatcher) -> Mapping[str, object]:
    result = clone(args.repo, args.directory, dispatcher=dispatcher)
    if result is None:
        return {"skipped": True, "reason": f"{args.directory} already exists"}
    return {"skipped": False, **result.to_dict()}


_HANDLERS: Dict[Tuple[str, Optional[str]], Handler] = {
    ("release", "create"): _handle_release_create,
    ("release", "upload"): _handle_release_upload,
    ("release", "delete"): _handle_release_delete,
    ("release", "list"): _handle_release_list,
    ("release", "exists"): _handle_release_exists,
    ("release", "normalize"): _handle_release_normalize,
    ("run", "list"): _handle_run_list,
    ("run", "delete"): _handle_run_delete,
    ("run", "log"): _handle_run_log,
    ("secret", "set"): _handle_secret_set,
    ("secret", "delete"): _handle_secret_delete,
    ("secret", "describe"): _handle_secret_describe,
    ("revert", None): _handle_revert,
    ("git", "commit-all"): _handle_git_commit_all,
    ("git", "push"): _handle_git_push,
    ("git", "update"): _handle_git_update,
    ("git", "remove-history"): _handle_git_remove_history,
    ("auth", "login"): _handle_auth_login,
    ("auth", "status"): _handle_auth_status,
    ("repo", "create"): _handle_repo_create,
    ("repo", "clone"): _handle_repo_clone,
}


def _commands(results: List[CommandResult]) -> Dict[str, object]:
    return {"commands": [result.to_dict() for result in results]}


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
