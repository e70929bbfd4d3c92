"""Settings for the external tools ghops drives."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "ghops.yaml"
CONFIG_ENV = "GHOPS_CONFIG"

_ENV_OVERRIDES = {
    "GHOPS_GIT": "git_executable",
    "GHOPS_GH": "gh_executable",
    "GHOPS_REMOTE": "remote",
    "GHOPS_BRANCH": "branch",
    "GHOPS_SHOW": "show",
    "GHOPS_DOTENV": "dotenv_path",
}


class GhopsSettings(BaseModel):
    """Executables and defaults used when building and running commands."""

    model_config = ConfigDict(extra="forbid")

    git_executable: str = "git"
    gh_executable: str = "gh"
    remote: str = "origin"
    branch: str = "main"
    repo_marker: str = ".git"
    run_list_limit: int = Field(default=1000, ge=1)
    release_list_limit: int = Field(default=100, ge=1)
    show: bool = False
    dotenv_path: Optional[Path] = None


def load_settings(
    path: str | Path | None = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> GhopsSettings:
    """Layer defaults, an optional YAML file and ``GHOPS_*`` environment variables."""

    environ = os.environ if env is None else env
    values: Dict[str, Any] = {}

    config_path = _locate_config(path, environ)
    if config_path is not None:
        values.update(_read_yaml(config_path))

    for key, field_name in _ENV_OVERRIDES.items():
        raw = environ.get(key)
        if raw:
            values[field_name] = raw

    try:
        return GhopsSettings.model_validate(values)
    except ValidationError as exc:
        source = f" ({config_path})" if config_path else ""
        raise ConfigurationError(f"Invalid ghops settings{source}: {exc}") from exc


def _locate_config(path: str | Path | None, environ: Mapping[str, str]) -> Optional[Path]:
    if path is not None:
        explicit = Path(path)
        if not explicit.is_file():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return explicit
    from_env = environ.get(CONFIG_ENV)
    if from_env:
        candidate = Path(from_env)
        if not candidate.is_file():
            raise ConfigurationError(f"{CONFIG_ENV} points to a missing file: {candidate}")
        return candidate
    local = Path.cwd() / DEFAULT_CONFIG_NAME
    return local if local.is_file() else None


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Expected a mapping in {path}, got {type(loaded).__name__}")
    logger.debug("Loaded ghops settings from %s", path)
    return loaded


__all__ = ["CONFIG_ENV", "DEFAULT_CONFIG_NAME", "GhopsSettings", "load_settings"]
