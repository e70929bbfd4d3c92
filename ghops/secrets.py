"""Secret resolution and output redaction."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol

from dotenv import dotenv_values

REDACTED = "***"


@dataclass(frozen=True)
class SecretSpec:
    name: str
    description: str = ""


class SecretResolver(Protocol):
    def resolve(self, spec: SecretSpec) -> Optional[str]:  # pragma: no cover - interface
        ...

    def describe(self) -> dict[str, object]:  # pragma: no cover - optional hook
        return {}


@dataclass(frozen=True)
class SecretAttempt:
    resolver: str
    source: str
    success: bool
    details: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class SecretResolutionInfo:
    name: str
    value: Optional[str]
    resolver: Optional[str]
    source: Optional[str]
    details: dict[str, object]
    attempts: List[SecretAttempt]


@dataclass
class _RegisteredResolver:
    priority: int
    resolver: SecretResolver
    name: str
    source: str
    details: dict[str, object]


_secret_specs: dict[str, SecretSpec] = {}
_resolvers: List[_RegisteredResolver] = []


def register_secret(spec: SecretSpec) -> None:
    _secret_specs.setdefault(spec.name, spec)


def register_resolver(
    resolver: SecretResolver,
    priority: int = 0,
    *,
    name: Optional[str] = None,
    source: Optional[str] = None,
    details: Optional[dict[str, object]] = None,
) -> None:
    entry = _RegisteredResolver(
        priority=priority,
        resolver=resolver,
        name=name or resolver.__class__.__name__,
        source=source or (name or resolver.__class__.__name__),
        details=dict(details or {}),
    )
    _resolvers.append(entry)
    _resolvers.sort(key=lambda item: item.priority, reverse=True)


class EnvResolver:
    """Resolve secrets from process environment variables."""

    def resolve(self, spec: SecretSpec) -> Optional[str]:
        value = os.getenv(spec.name)
        return value if value else None

    def describe(self) -> dict[str, object]:
        return {"type": "env"}


register_resolver(EnvResolver(), priority=0, name="env", source="env")


class DotEnvResolver:
    """Resolve secrets from a ``.env`` file, loaded lazily on first lookup."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._loaded = False
        self._values: Dict[str, str] = {}
        self._warnings: List[str] = []

    def resolve(self, spec: SecretSpec) -> Optional[str]:
        self._ensure_loaded()
        value = self._values.get(spec.name)
        return value if value else None

    def describe(self) -> dict[str, object]:
        return {
            "type": "dotenv",
            "path": str(self.path),
            "exists": self.path.exists(),
            "loaded": self._loaded,
            "warnings": list(self._warnings),
        }

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self.path.exists():
            return
        for key, value in dotenv_values(self.path).items():
            if value is None:
                self._warnings.append(f"{key}: no value")
                continue
            self._values[key] = value


def use_dotenv(path: str | Path, *, priority: int = -10) -> None:
    """Register a dotenv resolver for ``path`` unless one is already registered."""

    resolver = DotEnvResolver(Path(path))
    name = f"dotenv:{resolver.path}"
    if any(entry.name == name for entry in _resolvers):
        return
    register_resolver(
        resolver,
        priority=priority,
        name=name,
        source="dotenv",
        details={"path": str(resolver.path)},
    )


def resolve_secret(name: str) -> Optional[str]:
    return resolve_secret_info(name).value


def resolve_secret_info(name: str) -> SecretResolutionInfo:
    spec = _secret_specs.get(name, SecretSpec(name=name))
    attempts: List[SecretAttempt] = []

    for entry in _resolvers:
        details = dict(entry.details)
        value = entry.resolver.resolve(spec)

        describe = getattr(entry.resolver, "describe", None)
        if callable(describe):
            extra = describe()
            if isinstance(extra, dict):
                details.update(extra)

        success = bool(value)
        attempts.append(
            SecretAttempt(resolver=entry.name, source=entry.source, success=success, details=details)
        )
        if success:
            return SecretResolutionInfo(
                name=spec.name,
                value=value,
                resolver=entry.name,
                source=entry.source,
                details=details,
                attempts=attempts,
            )

    return SecretResolutionInfo(
        name=spec.name,
        value=None,
        resolver=None,
        source=None,
        details={},
        attempts=attempts,
    )


def describe_secret(name: str) -> dict[str, object]:
    """Report where a secret would be resolved from, without its value."""

    spec = _secret_specs.get(name, SecretSpec(name=name))
    info = resolve_secret_info(name)
    return {
        "name": spec.name,
        "description": spec.description,
        "present": info.value is not None,
        "resolver": info.resolver,
        "source": info.source,
        "details": info.details,
        "attempts": [
            {
                "resolver": attempt.resolver,
                "source": attempt.source,
                "success": attempt.success,
                "details": attempt.details,
            }
            for attempt in info.attempts
        ],
    }


def redact(text: str, values: Iterable[str], mask: str = REDACTED) -> str:
    # Longest first so a secret containing another secret is masked whole.
    for value in sorted({v for v in values if v}, key=len, reverse=True):
        text = text.replace(value, mask)
    return text


def redact_lines(lines: Iterable[str], values: Iterable[str], mask: str = REDACTED) -> List[str]:
    secrets = [v for v in values if v]
    if not secrets:
        return list(lines)
    return [redact(line, secrets, mask) for line in lines]


__all__ = [
    "DotEnvResolver",
    "EnvResolver",
    "REDACTED",
    "SecretAttempt",
    "SecretResolutionInfo",
    "SecretSpec",
    "describe_secret",
    "redact",
    "redact_lines",
    "register_resolver",
    "register_secret",
    "resolve_secret",
    "resolve_secret_info",
    "use_dotenv",
]
