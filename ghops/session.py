"""Explicit hosting session: identity, token lookup and login helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .commands import Operation, build_command
from .dispatcher import CommandResult, Dispatcher, resolve_dispatcher
from .secrets import SecretSpec, register_secret, resolve_secret

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionContext:
    """Credentials and identity handed to operations that talk to the host.

    ``gh`` still owns credential persistence; the session only decides which
    token (if any) child processes see and which git identity ``login``
    configures.
    """

    hostname: str = "github.com"
    username: Optional[str] = None
    email: Optional[str] = None
    token_env: str = "GH_TOKEN"

    def __post_init__(self) -> None:
        register_secret(SecretSpec(name=self.token_env, description=f"Token for {self.hostname}"))

    def token(self) -> Optional[str]:
        return resolve_secret(self.token_env)

    def environment(self) -> Dict[str, str]:
        token = self.token()
        return {"GH_TOKEN": token} if token else {}

    def secret_values(self) -> List[str]:
        token = self.token()
        return [token] if token else []


def login(session: SessionContext, *, dispatcher: Optional[Dispatcher] = None) -> List[CommandResult]:
    """Authenticate ``gh``, wire it into git and set the git identity."""

    runner = resolve_dispatcher(dispatcher)
    token = session.token()
    results: List[CommandResult] = []

    if token:
        spec = build_command(
            Operation.GH_AUTH_LOGIN,
            hostname=session.hostname,
            with_token=True,
            input_text=token,
        )
        results.append(runner.run(spec, export_token=False))
    else:
        logger.info("No %s token resolved; falling back to interactive gh login", session.token_env)
        spec = build_command(Operation.GH_AUTH_LOGIN, hostname=session.hostname)
        results.append(runner.run(spec, capture=False, export_token=False))

    results.append(runner.run(build_command(Operation.GH_AUTH_SETUP_GIT, hostname=session.hostname)))

    if session.email:
        results.append(
            runner.run(build_command(Operation.GIT_CONFIG_GLOBAL, key="user.email", value=session.email))
        )
    if session.username:
        results.append(
            runner.run(build_command(Operation.GIT_CONFIG_GLOBAL, key="user.name", value=session.username))
        )
    return results


def auth_status(session: Optional[SessionContext] = None, *, dispatcher: Optional[Dispatcher] = None) -> CommandResult:
    hostname = session.hostname if session is not None else "github.com"
    spec = build_command(Operation.GH_AUTH_STATUS, hostname=hostname)
    return resolve_dispatcher(dispatcher).run(spec, check=False)


__all__ = ["SessionContext", "auth_status", "login"]
