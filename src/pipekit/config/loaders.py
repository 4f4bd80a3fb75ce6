# src/pipekit/config/loaders.py

"""Configuration loaders for environment and files.

Pure data loading functions: each returns a plain dictionary that the core
resolver merges. No validation happens here.
"""

from __future__ import annotations

import logging
import os
import tomllib
from typing import TYPE_CHECKING, Any

from . import utils

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

log = logging.getLogger(__name__)

CONFIG_TOOL_NAME = "pipekit"

# Meta/control variables that steer resolution but aren't config fields
META_ENV_FIELDS = {"profile", "pyproject_path", "config_home", "telemetry"}

# --- Environment Loading ---


def load_env() -> Mapping[str, Any]:
    """Load configuration from ``PIPEKIT_*`` environment variables.

    Booleans are coerced using the ``Settings`` schema; everything else is
    passed through as a string for pydantic to validate. Meta variables
    (profile, file paths, telemetry toggle) and names that are not
    ``Settings`` fields are skipped.
    """
    from .core import Settings  # local import keeps loaders import-light

    config: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(utils.ENV_PREFIX):
            continue
        field_name = key[len(utils.ENV_PREFIX) :].lower()
        if field_name in META_ENV_FIELDS:
            continue
        info = Settings.model_fields.get(field_name)
        if info is None:
            log.debug("Ignoring unknown environment variable %s", key)
            continue
        if info.annotation is bool:
            config[field_name] = utils.coerce_bool(value)
        else:
            config[field_name] = value
    return config


# --- File loading ---


def list_profiles() -> list[str]:
    """List profile names available in home and project TOML files."""
    names: set[str] = set()
    for path in (utils.get_pyproject_path(), utils.get_home_config_path()):
        data = _read_toml(path)
        profiles = data.get("tool", {}).get(CONFIG_TOOL_NAME, {}).get("profiles", {})
        names.update(name for name in profiles if isinstance(name, str) and name)
    return sorted(names)


def _read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file, returning an empty dict when missing or unreadable."""
    if not path.exists():
        return {}
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning("Ignoring unreadable config file %s: %s", path, e)
        return {}


def _extract_tables(data: dict[str, Any], profile: str | None) -> dict[str, Any]:
    """Extract ``[tool.pipekit]`` and overlay ``[tool.pipekit.profiles.<name>]``."""
    section = data.get("tool", {}).get(CONFIG_TOOL_NAME, {})
    base = {k: v for k, v in section.items() if k != "profiles"}
    if profile:
        base.update(section.get("profiles", {}).get(profile, {}))
    return base


def _load_config_file(path: Path, profile: str | None = None) -> Mapping[str, Any]:
    data = _read_toml(path)
    return _extract_tables(data, profile or utils.get_effective_profile())


def load_pyproject(profile: str | None = None) -> Mapping[str, Any]:
    """Load ``[tool.pipekit]`` from the project's pyproject.toml."""
    return _load_config_file(utils.get_pyproject_path(), profile)


def load_home(profile: str | None = None) -> Mapping[str, Any]:
    """Load ``[tool.pipekit]`` from the user's ``~/.config/pipekit.toml``."""
    return _load_config_file(utils.get_home_config_path(), profile)
