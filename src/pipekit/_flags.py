"""Internal helpers for environment feature flags.

Centralizes how opt-in toggles are read so semantics stay consistent and
tests can flip them with ``monkeypatch.setenv``.
"""

from __future__ import annotations

import os

from pipekit.config.utils import TELEMETRY_VAR

__all__ = ["telemetry_enabled"]


def telemetry_enabled(*, override: bool | None = None) -> bool:
    """Return True when telemetry collection is enabled.

    - If ``override`` is provided, it takes precedence.
    - Otherwise, returns True when ``PIPEKIT_TELEMETRY`` is exactly ``"1"``.
    """
    if override is not None:
        return bool(override)
    return os.getenv(TELEMETRY_VAR) == "1"
