"""Plain pipeline without error capture.

Use ``PipeSegment`` when steps should fail fast: any exception a step raises
propagates straight to the caller and the segment is abandoned.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Self

if TYPE_CHECKING:
    from collections.abc import Callable

    from pipekit.policy import ErrorPolicy
    from pipekit.result import PipeResult
    from pipekit.telemetry import TelemetryContextProtocol


class PipeSegment[T]:
    """A value passed through steps with native exception propagation."""

    __slots__ = ("_value",)

    def __init__(self, value: T) -> None:
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    def reinit(self, value: T) -> Self:
        """Replace the carried value."""
        self._value = value
        return self

    def process(self, step: Callable[[T], T]) -> Self:
        """Replace the carried value with ``step(value)``."""
        self._value = step(self._value)
        return self

    def use(self, step: Callable[[T], object]) -> T:
        """Hand the value to an observer; return the value unchanged."""
        step(self._value)
        return self._value

    def apply[R](self, step: Callable[[T], R]) -> R:
        """Return ``step(value)`` without committing it."""
        return step(self._value)

    def finish(self) -> T:
        return self._value

    def to_result(
        self,
        policy: ErrorPolicy[T] | None = None,
        *,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> PipeResult[T]:
        """Continue with the current value in an error-aware pipeline."""
        from pipekit.result import PipeResult

        return PipeResult(self._value, policy, telemetry=telemetry)

    def __repr__(self) -> str:
        return f"PipeSegment(value={self._value!r})"
