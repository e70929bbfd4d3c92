"""Run external commands inside a repository and capture their output.

The dispatcher changes the process working directory for the duration of a
call and always restores it, including when the command fails or the call is
interrupted.  Because the working directory is process-wide state, callers
must serialise dispatcher calls: never run two of them concurrently in the
same process.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from .commands import CommandSpec, Tool
from .config import GhopsSettings, load_settings
from .errors import ConfigurationError, OperationalError, ToolEnvironmentError
from .secrets import redact

if TYPE_CHECKING:  # pragma: no cover
    from .session import SessionContext

logger = logging.getLogger(__name__)

TOKEN_VARIABLES = ("GH_TOKEN", "GITHUB_TOKEN")


@dataclass(slots=True)
class CommandResult:
    """Captured output of one external command."""

    command: Tuple[str, ...]
    cwd: Optional[Path]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def lines(self) -> List[str]:
        return self.stdout.splitlines() + self.stderr.splitlines()

    @property
    def display(self) -> str:
        return shlex.join(self.command)

    def to_dict(self) -> Dict[str, object]:
        return {
            "command": self.display,
            "cwd": str(self.cwd) if self.cwd else None,
            "returncode": self.returncode,
            "lines": self.lines,
        }


@contextmanager
def working_directory(path: str | Path | None) -> Iterator[Path]:
    """Temporarily switch the process working directory to ``path``."""

    previous = os.getcwd()
    if path is None:
        yield Path(previous)
        return
    os.chdir(path)
    try:
        yield Path(path)
    finally:
        os.chdir(previous)


class Dispatcher:
    """Executes :class:`CommandSpec` objects with the configured tools."""

    def __init__(
        self,
        settings: Optional[GhopsSettings] = None,
        session: Optional["SessionContext"] = None,
        *,
        show: Optional[bool] = None,
        echo: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.settings = settings or GhopsSettings()
        self.session = session
        self.show = self.settings.show if show is None else show
        self._echo = echo or print

    def executable(self, tool: Tool) -> str:
        name = self.settings.git_executable if tool is Tool.GIT else self.settings.gh_executable
        resolved = shutil.which(name)
        if resolved is None:
            raise ToolEnvironmentError(
                f"'{name}' was not found on PATH. Install it or point GHOPS_{tool.name} at the executable."
            )
        return resolved

    def validate_directory(self, spec: CommandSpec) -> Optional[Path]:
        """Check the target directory before anything is started."""

        target = spec.cwd.expanduser() if spec.cwd is not None else None
        if target is not None and not target.is_dir():
            raise ConfigurationError(f"Working directory does not exist: {target}")
        if spec.requires_repository:
            root = target if target is not None else Path.cwd()
            marker = root / self.settings.repo_marker
            if not marker.exists():
                raise ConfigurationError(
                    f"{root} is not a repository root (missing {self.settings.repo_marker})"
                )
        return target

    def run(
        self,
        spec: CommandSpec,
        *,
        check: bool = True,
        capture: bool = True,
        redact_values: Iterable[str] = (),
        export_token: bool = True,
    ) -> CommandResult:
        """Run ``spec`` and return its captured output.

        With ``export_token=False`` the child sees no token variables at all;
        ``gh auth login`` refuses to run while one is set.
        """

        cwd = self.validate_directory(spec)
        executable = self.executable(spec.tool)

        secrets = self._secret_values(spec, redact_values)
        command = tuple(redact(token, secrets) for token in spec.tokens)
        display = redact(spec.display, secrets)

        if self.show:
            self._echo(f"\nRunning:\n {display}")
        logger.debug("Running %s (cwd=%s)", display, cwd or os.getcwd())

        with working_directory(cwd):
            try:
                proc = subprocess.run(
                    [executable, *spec.args],
                    input=spec.input_text,
                    capture_output=capture,
                    text=True,
                    env=self._environment(export_token),
                    check=False,
                )
            except FileNotFoundError as exc:
                raise ToolEnvironmentError(f"Could not start '{executable}': {exc}") from exc

        result = CommandResult(
            command=command,
            cwd=cwd,
            returncode=proc.returncode,
            stdout=redact(proc.stdout or "", secrets),
            stderr=redact(proc.stderr or "", secrets),
        )
        logger.debug("%s exited with status %s", display, result.returncode)

        if self.show and result.lines:
            self._echo("\n".join(result.lines))

        if check and not result.ok:
            logger.warning("%s failed with exit status %s", display, result.returncode)
            raise OperationalError(f"`{display}` failed with exit status {result.returncode}", result)
        return result

    def _secret_values(self, spec: CommandSpec, extra: Iterable[str]) -> List[str]:
        values = [value for value in extra if value]
        if spec.input_text:
            values.append(spec.input_text.strip())
        if self.session is not None:
            values.extend(self.session.secret_values())
        return values

    def _environment(self, export_token: bool = True) -> Optional[Dict[str, str]]:
        if not export_token:
            return {key: value for key, value in os.environ.items() if key not in TOKEN_VARIABLES}
        if self.session is None:
            return None
        extra = self.session.environment()
        if not extra:
            return None
        return {**os.environ, **extra}


def resolve_dispatcher(dispatcher: Optional[Dispatcher]) -> Dispatcher:
    if dispatcher is not None:
        return dispatcher
    return Dispatcher(load_settings())


def run_command(
    spec: CommandSpec,
    *,
    dispatcher: Optional[Dispatcher] = None,
    check: bool = True,
) -> CommandResult:
    return resolve_dispatcher(dispatcher).run(spec, check=check)


__all__ = [
    "CommandResult",
    "Dispatcher",
    "resolve_dispatcher",
    "run_command",
    "working_directory",
]
