"""Per-pipeline error policy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from pipekit.config import FrozenConfig


@dataclass(frozen=True, slots=True)
class ErrorPolicy[T]:
    """How a ``PipeResult`` treats exceptions raised by its steps.

    Fixed for the lifetime of the pipeline it is given to.

    Attributes:
        ignore_errors: Capture step failures instead of re-raising them.
        on_error_return: Called as ``on_error_return(value, exc)`` after each
            capture; its result becomes the carried value.
        short_circuit_on_error: Skip every later step once any failure has
            been captured.
    """

    ignore_errors: bool = True
    on_error_return: Callable[[T, BaseException], T] | None = None
    short_circuit_on_error: bool = False

    def __post_init__(self) -> None:
        if self.on_error_return is not None and not callable(self.on_error_return):
            raise TypeError("ErrorPolicy.on_error_return must be callable or None")

    @classmethod
    def from_config(
        cls,
        config: FrozenConfig,
        *,
        ignore_errors: bool | None = None,
        on_error_return: Callable[[Any, BaseException], Any] | None = None,
        short_circuit_on_error: bool | None = None,
    ) -> ErrorPolicy[Any]:
        """Build a policy, filling unset flags from ``config``."""
        return cls(
            ignore_errors=(
                config.ignore_errors if ignore_errors is None else ignore_errors
            ),
            on_error_return=on_error_return,
            short_circuit_on_error=(
                config.short_circuit_on_error
                if short_circuit_on_error is None
                else short_circuit_on_error
            ),
        )

    @property
    def recovers(self) -> bool:
        return self.on_error_return is not None
