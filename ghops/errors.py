"""Error taxonomy shared by every ghops operation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .dispatcher import CommandResult


class GhopsError(RuntimeError):
    """Base class for all errors raised by ghops."""

    kind = "error"

    def to_dict(self) -> Dict[str, object]:
        return {"error": self.kind, "message": str(self), "output": self.output_lines()}

    def output_lines(self) -> List[str]:
        return []


class ConfigurationError(GhopsError):
    """Invalid or contradictory parameters, or a directory that is not a usable repository."""

    kind = "configuration"


class ToolEnvironmentError(GhopsError):
    """A required external tool is not available on the search path."""

    kind = "environment"


class NotFoundError(GhopsError):
    """A referenced file, commit, tag or secret does not exist."""

    kind = "not_found"


class OperationalError(GhopsError):
    """An external command ran but exited with a non-zero status."""

    kind = "operational"

    def __init__(self, message: str, result: Optional["CommandResult"] = None) -> None:
        super().__init__(message)
        self.result = result

    def output_lines(self) -> List[str]:
        return list(self.result.lines) if self.result is not None else []

    def to_dict(self) -> Dict[str, object]:
        payload = super().to_dict()
        if self.result is not None:
            payload["command"] = self.result.display
            payload["returncode"] = self.result.returncode
        return payload


__all__ = [
    "ConfigurationError",
    "GhopsError",
    "NotFoundError",
    "OperationalError",
    "ToolEnvironmentError",
]
