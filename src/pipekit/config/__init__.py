# src/pipekit/config/__init__.py

"""Configuration for pipeline defaults.

Resolve once, freeze, then flow: configuration is resolved into an immutable
``FrozenConfig`` and pipelines read their default policy from it.

Key exports:
- resolve_config: resolve all layers into a FrozenConfig
- current_config: ambient scope or cached process-wide config
- config_scope: context manager for scoped configuration
- Settings: pydantic schema for validation and defaults
"""

# ruff: noqa: I001

from .core import (
    FieldOrigin,
    FrozenConfig,
    Origin,
    Settings,
    SourceMap,
    audit_lines,
    audit_text,
    check_environment,
    clear_config_cache,
    config_scope,
    current_config,
    resolve_config,
    to_dict,
)
from .loaders import list_profiles
from .utils import field_spec_hint

__all__ = [  # noqa: RUF022
    "resolve_config",
    "current_config",
    "config_scope",
    "clear_config_cache",
    "FrozenConfig",
    "Settings",
    "Origin",
    "FieldOrigin",
    "SourceMap",
    "audit_lines",
    "audit_text",
    "to_dict",
    "check_environment",
    "list_profiles",
    "field_spec_hint",
]
