# src/pipekit/config/core.py

"""Core configuration schema and resolution.

- ``Settings``: pydantic schema, single source of truth for fields and defaults
- ``FrozenConfig``: immutable runtime payload handed to pipelines
- ``SourceMap``: where each resolved field came from, for audits
- ``config_scope``: guarded ambient scope for entry-time convenience

The first resolution in a process calls python-dotenv's ``load_dotenv()``,
which copies variables from the nearest ``.env`` file into ``os.environ``.
Variables already set in the environment are left untouched, and later
resolutions do not read the file again.
"""

from __future__ import annotations

from contextlib import contextmanager
import contextvars
from dataclasses import asdict, dataclass
from enum import Enum
from functools import cache
import logging
import os
from typing import TYPE_CHECKING, Any, Literal, overload

from pydantic import BaseModel, Field, ValidationError, field_validator

from pipekit.errors import ConfigurationError

from .utils import ENV_PREFIX, field_spec_hint, normalize_level_name

if TYPE_CHECKING:
    from collections.abc import Generator, Mapping

log = logging.getLogger(__name__)

# --- Schema (Pydantic wall) ---


class Settings(BaseModel):
    """Pydantic schema for pipeline defaults.

    Every field is a default that applies when a pipeline is created without
    an explicit value for it.
    """

    ignore_errors: bool = Field(default=True)
    short_circuit_on_error: bool = Field(default=False)
    label_prefix: str = Field(default="step", min_length=1)
    batch_label_prefix: str = Field(default="batch", min_length=1)
    capture_log_level: str = Field(default="DEBUG")

    model_config = {"extra": "forbid"}

    @field_validator("label_prefix", "batch_label_prefix", mode="before")
    @classmethod
    def strip_prefix(cls, v: Any) -> Any:
        """Trim surrounding whitespace on label prefixes."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("capture_log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        """Accept level names in any case or numeric levels."""
        if isinstance(v, str | int) and not isinstance(v, bool):
            return normalize_level_name(v)
        return v


@cache
def _default_settings() -> dict[str, Any]:
    return Settings().model_dump()


# --- Immutable runtime payload ---


@dataclass(frozen=True)
class FrozenConfig:
    """Resolved, validated configuration handed to pipelines."""

    ignore_errors: bool
    short_circuit_on_error: bool
    label_prefix: str
    batch_label_prefix: str
    capture_log_level: str

    @property
    def capture_log_levelno(self) -> int:
        return logging.getLevelNamesMapping()[self.capture_log_level]


# --- Audit types ---


class Origin(str, Enum):
    """Source origin for configuration field values."""

    DEFAULT = "default"
    HOME = "home"
    PROJECT = "project"
    ENV = "env"
    OVERRIDES = "overrides"


@dataclass(frozen=True)
class FieldOrigin:
    """Tracks the origin and context of a configuration field value."""

    origin: Origin
    env_key: str | None = None  # e.g., "PIPEKIT_LABEL_PREFIX"
    file: str | None = None  # e.g., "~/.config/pipekit.toml"


SourceMap = dict[str, FieldOrigin]


# --- Ambient scope (guarded) ---

_AMBIENT: contextvars.ContextVar[FrozenConfig | None] = contextvars.ContextVar(
    "pipekit_ambient_config", default=None
)

_DOTENV_LOADED: bool = False


@contextmanager
def config_scope(
    cfg_or_overrides: Mapping[str, Any] | FrozenConfig | None = None,
    *,
    profile: str | None = None,
    **overrides: object,
) -> Generator[FrozenConfig]:
    """Run a block with a specific configuration as the ambient default.

    Pipelines created inside the block without explicit policy flags take
    their defaults from this configuration.

    Example:
        with config_scope(short_circuit_on_error=True):
            start_pipeline(load).process(parse).process(validate)
    """
    if isinstance(cfg_or_overrides, FrozenConfig):
        cfg = cfg_or_overrides
    else:
        combined = {**(cfg_or_overrides or {}), **overrides}
        cfg = resolve_config(overrides=combined, profile=profile)

    token = _AMBIENT.set(cfg)
    try:
        yield cfg
    finally:
        _AMBIENT.reset(token)


def current_config() -> FrozenConfig:
    """Return the ambient configuration, or the process-wide resolved one.

    The process-wide configuration is resolved once and cached; call
    ``clear_config_cache()`` after changing the environment.
    """
    scoped = _AMBIENT.get()
    if scoped is not None:
        return scoped
    return _cached_config()


@cache
def _cached_config() -> FrozenConfig:
    return resolve_config()


def clear_config_cache() -> None:
    """Forget the cached process-wide configuration."""
    _cached_config.cache_clear()


def _load_dotenv_once() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    from dotenv import load_dotenv

    load_dotenv()
    _DOTENV_LOADED = True


# --- Public resolution API ---


@overload
def resolve_config(
    overrides: Mapping[str, Any] | None = ...,
    profile: str | None = ...,
    *,
    explain: Literal[True],
) -> tuple[FrozenConfig, SourceMap]: ...


@overload
def resolve_config(
    overrides: Mapping[str, Any] | None = ...,
    profile: str | None = ...,
    *,
    explain: Literal[False] = ...,
) -> FrozenConfig: ...


def resolve_config(
    overrides: Mapping[str, Any] | None = None,
    profile: str | None = None,
    *,
    explain: bool = False,
) -> FrozenConfig | tuple[FrozenConfig, SourceMap]:
    """Resolve configuration from all sources into a FrozenConfig.

    Precedence: defaults < home < project < env < overrides.

    Args:
        overrides: Programmatic configuration overrides.
        profile: Profile name to overlay from TOML files.
        explain: If True, return ``(config, source_map)``.

    Raises:
        ConfigurationError: If the merged values fail validation.
    """
    _load_dotenv_once()

    from . import utils as _utils
    from .loaders import load_env, load_home, load_pyproject

    effective_profile = (
        profile if profile is not None else _utils.get_effective_profile()
    )

    merged, sources = _resolve_layers(
        overrides=overrides or {},
        env=load_env(),
        project=load_pyproject(profile=effective_profile),
        home=load_home(profile=effective_profile),
    )

    try:
        settings = Settings.model_validate(merged)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ())) or None
        msg = err.get("msg") or "invalid value"
        if msg.startswith("Value error, "):
            msg = msg[13:]
        hint = None
        if field in Settings.model_fields:
            hint = field_spec_hint(field)
        elif err.get("type") == "extra_forbidden":
            hint = f"Known fields: {', '.join(sorted(Settings.model_fields))}."
        raise ConfigurationError(
            f"Configuration validation failed for {field or 'config'}: {msg}",
            hint=hint,
        ) from e

    frozen = FrozenConfig(**settings.model_dump())
    log.debug("Resolved pipekit config: %s", frozen)
    return (frozen, sources) if explain else frozen


def _resolve_layers(
    *,
    overrides: Mapping[str, Any],
    env: Mapping[str, Any],
    project: Mapping[str, Any],
    home: Mapping[str, Any],
) -> tuple[dict[str, Any], SourceMap]:
    """Merge layers with last-wins precedence, recording each field's origin."""
    from .utils import get_home_config_path, get_pyproject_path

    layers = [
        (Origin.HOME, home),
        (Origin.PROJECT, project),
        (Origin.ENV, env),
        (Origin.OVERRIDES, overrides),
    ]

    out: dict[str, Any] = dict(_default_settings())
    src: SourceMap = {k: FieldOrigin(origin=Origin.DEFAULT) for k in out}

    for origin, payload in layers:
        for k, v in payload.items():
            out[k] = v
            if origin is Origin.ENV:
                src[k] = FieldOrigin(origin=origin, env_key=f"{ENV_PREFIX}{k.upper()}")
            elif origin is Origin.PROJECT:
                src[k] = FieldOrigin(origin=origin, file=str(get_pyproject_path()))
            elif origin is Origin.HOME:
                src[k] = FieldOrigin(origin=origin, file=str(get_home_config_path()))
            else:
                src[k] = FieldOrigin(origin=origin)

    return out, src


# --- Audit helpers ---


def _origin_label(field: str, where: FieldOrigin) -> str:
    match where.origin:
        case Origin.ENV:
            return f"env:{where.env_key or ENV_PREFIX + field.upper()}"
        case Origin.PROJECT:
            return f"file:{where.file or 'pyproject.toml'}"
        case Origin.HOME:
            return f"file:{where.file or '~/.config/pipekit.toml'}"
        case _:
            return str(where.origin.value)


def audit_lines(cfg: FrozenConfig, sources: SourceMap) -> list[str]:
    """One line per field: name, value, and where the value came from."""
    lines: list[str] = []
    for field, value in asdict(cfg).items():
        fo = sources.get(field, FieldOrigin(origin=Origin.DEFAULT))
        lines.append(f"{field}={value!r} ({_origin_label(field, fo)})")
    return lines


def audit_text(cfg: FrozenConfig, sources: SourceMap) -> str:
    """Format audit as a single string suitable for printing/logging."""
    return "\n".join(audit_lines(cfg, sources))


def to_dict(cfg: FrozenConfig) -> dict[str, Any]:
    """Plain dict view for structured logging."""
    return asdict(cfg)


def check_environment() -> dict[str, str]:
    """Return the current ``PIPEKIT_*`` environment variables."""
    return {k: v for k, v in os.environ.items() if k.startswith(ENV_PREFIX)}


# --- Minimal CLI entrypoint ---


def main(argv: list[str] | None = None) -> int:
    """``pipekit-config``: show, audit, or list the pipekit environment."""
    import argparse
    import json
    import sys

    parser = argparse.ArgumentParser("pipekit-config")
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("show")
    sub.add_parser("audit")
    sub.add_parser("env")
    args = parser.parse_args(argv)

    try:
        if args.cmd == "show":
            cfg = resolve_config()
            sys.stdout.write(json.dumps(to_dict(cfg), indent=2) + "\n")
        elif args.cmd == "audit":
            cfg, src = resolve_config(explain=True)
            sys.stdout.write(audit_text(cfg, src) + "\n")
        elif args.cmd == "env":
            for k, v in sorted(check_environment().items()):
                sys.stdout.write(f"{k}={v}\n")
    except ConfigurationError as e:
        sys.stderr.write(f"error: {e}\n")
        if e.hint:
            sys.stderr.write(f"hint: {e.hint}\n")
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
