"""Configuration for the template engine.

Settings are read from an optional `attl.yaml`:

    max_depth: 1000   # deepest allowed chain of attribute expansions
    entry: 0          # code block execution starts from
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from attl.errors import ConfigError

SETTINGS_FILENAME = "attl.yaml"


class Settings(BaseModel):
    """Runtime settings for the virtual machine."""

    model_config = {"extra": "forbid"}

    max_depth: int = Field(
        default=1000, ge=1, description="Maximum call stack depth before giving up"
    )
    entry: int = Field(default=0, ge=0, description="Code block to start from")


def load_settings(path: Path | str) -> Settings:
    """Load and validate settings from a YAML file.

    An empty file yields the defaults.

    Raises:
        ConfigError: if the file can't be read or doesn't validate.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(path, f"could not read file ({exc.strerror})") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(path, "failed to parse YAML") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(path, "top level must be a mapping")

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(path, str(exc)) from exc


def find_settings_file(cwd: Path | None = None) -> Path | None:
    """Return `attl.yaml` in `cwd` if it exists."""
    candidate = (cwd or Path.cwd()) / SETTINGS_FILENAME
    if candidate.is_file():
        return candidate
    return None
