"""Hosted releases: create with binary assets, upload, remove, list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .commands import Operation, build_command
from .dispatcher import CommandResult, Dispatcher, resolve_dispatcher
from .errors import ConfigurationError, NotFoundError, OperationalError

logger = logging.getLogger(__name__)

# gh and git only report missing resources in prose; these fragments are
# matched case-insensitively and may drift between tool versions.
MISSING_RELEASE_PATTERNS = ("not found",)
MISSING_TAG_PATTERNS = ("remote ref does not exist",)


@dataclass(slots=True)
class ReleaseRemoval:
    tag: str
    release_deleted: bool
    tag_deleted: bool
    results: List[CommandResult] = field(default_factory=list)

    @property
    def lines(self) -> List[str]:
        return [line for result in self.results for line in result.lines]

    def to_dict(self) -> dict[str, object]:
        return {
            "tag": self.tag,
            "release_deleted": self.release_deleted,
            "tag_deleted": self.tag_deleted,
            "commands": [result.to_dict() for result in self.results],
        }


def upload_binary_file(
    repo_dir: str | Path,
    tag: str,
    file: str | Path,
    *,
    title: Optional[str] = None,
    notes: str = "",
    target: str = "main",
    prerelease: bool = False,
    draft: bool = False,
    overwrite: bool = False,
    dispatcher: Optional[Dispatcher] = None,
) -> CommandResult:
    """Upload a single binary asset (e.g. an MP3) as its own release.

    With ``overwrite`` the asset replaces an existing one of the same name
    when a release for ``tag`` already exists.
    """

    _require_tag(tag)
    asset = _existing_file(repo_dir, file)
    runner = resolve_dispatcher(dispatcher)

    if overwrite and has_release(tag, repo_dir=repo_dir, dispatcher=runner):
        logger.info("Release %s exists; replacing asset %s", tag, asset)
        spec = build_command(Operation.GH_RELEASE_UPLOAD, cwd=repo_dir, tag=tag, files=[str(asset)], clobber=True)
        return runner.run(spec)

    spec = build_command(
        Operation.GH_RELEASE_CREATE,
        cwd=repo_dir,
        tag=tag,
        files=[str(asset)],
        title=title,
        notes=notes,
        target=target,
        prerelease=prerelease,
        draft=draft,
    )
    return runner.run(spec)


def upload_assets(
    repo_dir: str | Path,
    tag: str,
    files: Sequence[str | Path],
    *,
    clobber: bool = False,
    dispatcher: Optional[Dispatcher] = None,
) -> CommandResult:
    """Attach more assets to an existing release."""

    _require_tag(tag)
    assets = [str(_existing_file(repo_dir, item)) for item in files]
    spec = build_command(Operation.GH_RELEASE_UPLOAD, cwd=repo_dir, tag=tag, files=assets, clobber=clobber)
    return resolve_dispatcher(dispatcher).run(spec)


def remove_binary_file(
    repo_dir: str | Path,
    tag: str,
    *,
    yes: bool = False,
    remote: Optional[str] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> ReleaseRemoval:
    """Delete the release for ``tag`` and then the tag itself.

    A release or tag that does not exist is skipped, recognised by the
    external tool's "not found" wording.  Any other failure is raised.
    """

    _require_tag(tag)
    runner = resolve_dispatcher(dispatcher)

    release_result = runner.run(
        build_command(Operation.GH_RELEASE_DELETE, cwd=repo_dir, tag=tag, yes=yes),
        check=False,
    )
    release_deleted = _succeeded_or_missing(release_result, MISSING_RELEASE_PATTERNS, f"release {tag}")

    tag_result = runner.run(
        build_command(
            Operation.GIT_DELETE_REMOTE_TAG,
            cwd=repo_dir,
            remote=remote or runner.settings.remote,
            tag=tag,
        ),
        check=False,
    )
    tag_deleted = _succeeded_or_missing(tag_result, MISSING_TAG_PATTERNS, f"tag {tag}")

    return ReleaseRemoval(
        tag=tag,
        release_deleted=release_deleted,
        tag_deleted=tag_deleted,
        results=[release_result, tag_result],
    )


def list_releases(
    repo_dir: str | Path | None = None,
    owner_repo: Optional[str] = None,
    *,
    limit: Optional[int] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> List[str]:
    """Return the tag names of a repository's releases (newest first).

    ``owner_repo`` ("owner/name") queries the host directly; otherwise
    ``repo_dir`` (default: current directory) must be a local repository.
    """

    runner = resolve_dispatcher(dispatcher)
    effective_limit = limit if limit is not None else runner.settings.release_list_limit
    if owner_repo:
        spec = build_command(
            Operation.GH_RELEASE_LIST,
            limit=effective_limit,
            owner_repo=owner_repo,
            requires_repository=False,
        )
    else:
        spec = build_command(
            Operation.GH_RELEASE_LIST,
            cwd=repo_dir if repo_dir is not None else Path.cwd(),
            limit=effective_limit,
        )
    result = runner.run(spec)
    return [line.strip() for line in result.stdout.splitlines() if line.strip()]


def has_release(
    tag: str,
    repo_dir: str | Path | None = None,
    owner_repo: Optional[str] = None,
    *,
    limit: Optional[int] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> bool:
    _require_tag(tag)
    return tag in list_releases(repo_dir, owner_repo, limit=limit, dispatcher=dispatcher)


def _require_tag(tag: str) -> None:
    if not str(tag or "").strip():
        raise ConfigurationError("Argument 'tag' must be a non-empty string.")


def _existing_file(repo_dir: str | Path, file: str | Path) -> Path:
    path = Path(file)
    candidates = [path] if path.is_absolute() else [path, Path(repo_dir) / path]
    for candidate in candidates:
        if candidate.is_file():
            return candidate.resolve()
    raise NotFoundError(f"Asset not found: {file}")


def _succeeded_or_missing(result: CommandResult, patterns: Sequence[str], label: str) -> bool:
    if result.ok:
        return True
    text = "\n".join(result.lines).lower()
    if any(pattern in text for pattern in patterns):
        logger.info("%s does not exist; skipping", label)
        return False
    raise OperationalError(f"Deleting {label} failed with exit status {result.returncode}", result)


__all__ = [
    "MISSING_RELEASE_PATTERNS",
    "MISSING_TAG_PATTERNS",
    "ReleaseRemoval",
    "has_release",
    "list_releases",
    "remove_binary_file",
    "upload_assets",
    "upload_binary_file",
]
