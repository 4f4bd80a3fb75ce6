# src/pipekit/config/utils.py

"""Configuration utilities and shared constants.

Pure helpers that can be imported without creating circular dependencies:
path resolution, environment flags, and level-name normalization.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from collections.abc import Callable

# --- Constants ---

ENV_PREFIX = "PIPEKIT_"

CONFIG_HOME_VAR = "PIPEKIT_CONFIG_HOME"
PYPROJECT_PATH_VAR = "PIPEKIT_PYPROJECT_PATH"
PROFILE_VAR = "PIPEKIT_PROFILE"
TELEMETRY_VAR = "PIPEKIT_TELEMETRY"

_TRUTHY = {"1", "true", "yes", "on"}

# --- Path Utilities ---


def get_config_path(path_type: Literal["project", "home"]) -> Path:
    """Get configuration file path with environment override support.

    Falls back to a cwd-based path for the "home" type when ``Path.home()``
    cannot be resolved.
    """
    specs: dict[str, tuple[str, Callable[[], Path]]] = {
        "project": (
            PYPROJECT_PATH_VAR,
            lambda: Path.cwd() / "pyproject.toml",
        ),
        "home": (
            CONFIG_HOME_VAR,
            lambda: Path.home() / ".config" / "pipekit.toml",
        ),
    }
    env_var, default_factory = specs[path_type]
    if override := os.environ.get(env_var):
        return Path(override)
    try:
        return default_factory()
    except RuntimeError:
        if path_type == "home":
            return Path.cwd() / "pipekit.toml"
        raise


def get_pyproject_path() -> Path:
    return get_config_path("project")


def get_home_config_path() -> Path:
    return get_config_path("home")


# --- Environment Utilities ---


def coerce_bool(value: str) -> bool:
    """Convert string to boolean using common conventions."""
    return value.strip().lower() in _TRUTHY


def get_effective_profile() -> str | None:
    return os.environ.get(PROFILE_VAR) or None


def field_spec_hint(field: str) -> str:
    """Return a compact hint for setting a config field via env or files."""
    env_key = f"{ENV_PREFIX}{field.upper()}"
    return (
        f"Set {env_key} or [tool.pipekit] {field} in pyproject.toml "
        "(or ~/.config/pipekit.toml)."
    )


# --- Log levels ---


def normalize_level_name(value: str | int) -> str:
    """Return the canonical logging level name for ``value``.

    Accepts names in any case (``"debug"``) or numeric levels (``10``).

    Raises:
        ValueError: If ``value`` is not a known logging level.
    """
    if isinstance(value, int):
        name = logging.getLevelName(value)
        if name.startswith("Level "):
            raise ValueError(f"unknown log level: {value!r}")
        return name
    name = value.strip().upper()
    if name not in logging.getLevelNamesMapping():
        raise ValueError(f"unknown log level: {value!r}")
    return name
