from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field

from dir2prompt.config import DEFAULT_MAX_BYTES
from dir2prompt.exceptions import ConfigError

ENV_PREFIX = "DIR2PROMPT_"

# Options that may come from the environment; lists only from the command line or a config file.
ENV_KEYS = (
    "max_bytes",
    "no_gitignore",
    "no_hidden",
    "include_lockfiles",
    "strict_utf8",
    "log_file",
)


class Settings(BaseModel):
    """Configuration settings for a dir2prompt run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    root: Path = Field(default=Path(), description="Root directory to dump.")
    max_bytes: int = Field(
        default=DEFAULT_MAX_BYTES,
        ge=0,
        description="Max bytes included per file; files are truncated beyond this.",
    )
    no_gitignore: bool = Field(
        default=False,
        description="Do not respect .gitignore, .ignore, git excludes or global ignores.",
    )
    no_hidden: bool = Field(default=False, description="Exclude hidden files and directories.")
    include_lockfiles: bool = Field(default=False, description="Include common lockfiles.")
    exclude: list[str] = Field(default_factory=list, description="Additional exclude globs.")
    include: list[str] = Field(default_factory=list, description="Force-include globs.")
    strict_utf8: bool = Field(
        default=False,
        description="Skip files that are not valid UTF-8 instead of lossy output.",
    )
    config: str = Field(default="", description="YAML file with default settings.")
    log_file: str = Field(default="", description="Log file path.")


def env_defaults(env_file: str | None = None, environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Collect defaults from ``DIR2PROMPT_*`` variables.

    Values of the process environment win over the ones of the ``.env`` file.

    Args:
        env_file (str | None): the .env file to read; searched from the
            current directory when None
        environ (dict[str, str] | None): the environment, ``os.environ`` when None

    Returns:
        dict[str, Any]: raw values keyed by setting name, validated later by Settings
    """
    path = find_dotenv(usecwd=True) if env_file is None else env_file
    values: dict[str, str | None] = dict(dotenv_values(path)) if path else {}
    values.update(os.environ if environ is None else environ)
    out: dict[str, Any] = {}
    for key in ENV_KEYS:
        raw = values.get(ENV_PREFIX + key.upper())
        if raw is not None and raw.strip():
            out[key] = raw.strip()
    return out


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read default settings from a YAML mapping.

    Keys are setting names; dashes are accepted in place of underscores.

    Args:
        path (str | Path): the YAML file

    Raises:
        ConfigError: if the file cannot be read or parsed, is not a mapping,
            or names an unknown setting

    Returns:
        dict[str, Any]: raw values keyed by setting name
    """
    source = str(path)
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(source=source, reason=str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(source=source, reason="top level must be a mapping")

    out: dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        if name not in Settings.model_fields or name == "config":
            raise ConfigError(source=source, reason=f"unknown setting {key!r}")
        if name in {"exclude", "include"}:
            if isinstance(value, str):
                value = [value]  # noqa: PLW2901
            if not isinstance(value, list):
                raise ConfigError(source=source, reason=f"{key!r} must be a list of globs")
            value = [str(v) for v in value]  # noqa: PLW2901
        out[name] = value
    return out
