"""Exception hierarchy for pipekit."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pipekit.core.records import ErrorRecord


class PipekitError(Exception):
    """Base exception for all pipekit errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(PipekitError):
    """Configuration validation or resolution failed."""


class AggregateStepError(PipekitError):
    """Bundles every step failure a pipeline captured, in capture order.

    Raised only on request: ``finish(throw_if_errors=True)`` or
    ``use(..., throw_if_errors=True)``. The first captured exception is
    attached as ``__cause__`` so tracebacks point at the original failure.
    """

    def __init__(
        self,
        records: Iterable[ErrorRecord],
        *,
        hint: str | None = None,
    ) -> None:
        self.records: tuple[ErrorRecord, ...] = tuple(records)
        super().__init__(_summarize(self.records), hint=hint)
        if self.records:
            self.__cause__ = self.records[0].error

    @property
    def exceptions(self) -> tuple[BaseException, ...]:
        return tuple(r.error for r in self.records)

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(r.label for r in self.records)

    def __len__(self) -> int:
        return len(self.records)

    def as_exception_group(self) -> ExceptionGroup:
        """Return the captured failures as a builtin ``ExceptionGroup``.

        Lets callers use ``except*`` to pick out specific failure types.
        Non-``Exception`` errors are never captured, so the group is always
        a plain ``ExceptionGroup``.
        """
        if not self.records:
            raise ValueError("no step failures were captured")
        excs = [r.error for r in self.records if isinstance(r.error, Exception)]
        return ExceptionGroup(str(self), excs)


def _summarize(records: tuple[ErrorRecord, ...]) -> str:
    if not records:
        return "pipeline finished with no step failures"
    noun = "failure" if len(records) == 1 else "failures"
    parts = ", ".join(f"{r.label}: {type(r.error).__name__}" for r in records)
    return f"{len(records)} step {noun} captured ({parts})"
