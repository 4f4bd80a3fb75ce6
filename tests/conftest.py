"""Pytest configuration and fixtures.

Provides environment isolation, telemetry capture, and a few reusable step
doubles. Fixtures here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from pipekit.config import clear_config_cache
from pipekit.telemetry import SimpleReporter, TelemetryContext

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class RecordingStep:
    """Step double that records every value it receives.

    Returns ``fn(value)`` when ``fn`` is given, otherwise the value itself.
    Set ``fail_with`` to make every call raise instead.
    """

    fn: Any = None
    fail_with: BaseException | None = None
    calls: list[Any] = field(default_factory=list)

    def __call__(self, value: Any) -> Any:
        self.calls.append(value)
        if self.fail_with is not None:
            raise self.fail_with
        return self.fn(value) if self.fn is not None else value

    @property
    def called(self) -> bool:
        return bool(self.calls)


@pytest.fixture
def recording_step():
    """Factory fixture for ``RecordingStep`` instances."""
    return RecordingStep


@pytest.fixture
def reporter() -> SimpleReporter:
    return SimpleReporter()


@pytest.fixture
def telemetry(reporter):
    """An enabled telemetry context wired to the ``reporter`` fixture."""
    return TelemetryContext(reporter, enabled=True)


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_pipekit_env(request, monkeypatch, tmp_path):
    """Give each test a clean PIPEKIT_* environment and no config files.

    Points the project and home config paths at files that do not exist and
    clears the cached process-wide configuration before and after the test.
    Opt-out: @pytest.mark.allow_env_pollution
    """
    if not request.node.get_closest_marker("allow_env_pollution"):
        for key in list(os.environ.keys()):
            if key.startswith("PIPEKIT_"):
                monkeypatch.delenv(key, raising=False)
        monkeypatch.setenv("PIPEKIT_PYPROJECT_PATH", str(tmp_path / "absent.toml"))
        monkeypatch.setenv("PIPEKIT_CONFIG_HOME", str(tmp_path / "absent-home.toml"))
    clear_config_cache()
    yield
    clear_config_cache()


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def pipekit_debug_logging():
    """Let ``caplog`` see pipekit's DEBUG capture and skip records."""
    logging.getLogger("pipekit").setLevel(logging.DEBUG)
