"""Error-aware pipeline.

``PipeResult`` carries a value through caller-supplied steps. A step that
raises is either re-raised immediately or captured into an ordered error log,
depending on the pipeline's ``ErrorPolicy``; captured failures can be
replaced by a recovery value, can stop every later step from running, and can
be raised together at the end of the chain.

Example:
    result = (
        start_pipeline(lambda: " hello Everybody!")
        .process(str.strip)
        .process(lambda s: s.replace("!", "."))
        .process(str.lower)
        .finish()
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self

from pipekit.config import current_config
from pipekit.core.records import ErrorLog, ErrorRecord
from pipekit.core.result_primitives import Failure, attempt
from pipekit.errors import AggregateStepError
from pipekit.policy import ErrorPolicy
from pipekit.telemetry import TelemetryContext

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from pipekit.config import FrozenConfig
    from pipekit.telemetry import TelemetryContextProtocol

log = logging.getLogger(__name__)


class PipeResult[T]:
    """A value travelling through a chain of steps, plus captured failures.

    Continuing operations (``process``, ``process_all``) mutate this object
    and return it, so calls chain. Terminal operations (``finish``, ``use``,
    ``apply``) return a value instead. Each chaining call takes the next
    number from a per-pipeline sequence; unlabeled steps are recorded as
    ``"<label_prefix>-<n>"``.

    Not thread-safe; a pipeline belongs to the call site that created it.
    """

    def __init__(
        self,
        value: T,
        policy: ErrorPolicy[T] | None = None,
        *,
        errors: Iterable[ErrorRecord] = (),
        config: FrozenConfig | None = None,
        telemetry: TelemetryContextProtocol | None = None,
    ) -> None:
        """Wrap ``value``.

        Args:
            value: Initial carried value.
            policy: Error policy; defaults come from the active configuration.
            errors: Records carried over from an earlier pipeline. Numbering
                of later calls continues after the highest carried sequence.
            config: Configuration to read defaults and labels from.
            telemetry: Telemetry context; a fresh one by default.
        """
        self._config = config if config is not None else current_config()
        self._policy: ErrorPolicy[T] = (
            policy if policy is not None else ErrorPolicy.from_config(self._config)
        )
        self._value = value
        self._errors = ErrorLog(tuple(errors))
        self._sequence = max((r.sequence for r in self._errors), default=0)
        self._tele = telemetry if telemetry is not None else TelemetryContext()

    # --- State ---

    @property
    def value(self) -> T:
        """The most recently committed or recovered value."""
        return self._value

    @property
    def errors(self) -> tuple[ErrorRecord, ...]:
        """Captured failures, oldest first."""
        return self._errors.snapshot()

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    @property
    def policy(self) -> ErrorPolicy[T]:
        return self._policy

    @property
    def telemetry(self) -> TelemetryContextProtocol:
        """Telemetry context receiving this pipeline's step timings and counts."""
        return self._tele

    def error_map(self) -> dict[str, list[BaseException]]:
        """Captured failures grouped by label, in first-capture order."""
        return self._errors.by_label()

    # --- Continuing operations ---

    def process(self, step: Callable[[T], T], label: str | None = None) -> Self:
        """Replace the carried value with ``step(value)``.

        On failure the exception is re-raised when the policy does not ignore
        errors; otherwise it is recorded under ``label`` (or the default
        label) and, when a recovery function is set, the carried value is
        replaced by its result.
        """
        seq, name = self._begin(label, self._config.label_prefix)
        if self._short_circuited(name):
            return self

        with self._tele("step", label=name):
            outcome = attempt(step, self._value)

        if isinstance(outcome, Failure):
            self._capture(name, seq, outcome.error)
        else:
            self._value = outcome.value
        return self

    def process_all(
        self, steps: Iterable[Callable[[T], T]], label: str | None = None
    ) -> Self:
        """Run ``steps`` in order as one unit.

        The first step receives the carried value and each later step the
        previous step's output. Only the final output is committed; if any
        step raises, the batch is captured once and nothing from it is kept.
        """
        seq, name = self._begin(label, self._config.batch_label_prefix)
        if self._short_circuited(name):
            return self

        def run_batch(initial: T) -> T:
            current = initial
            for step in steps:
                current = step(current)
            return current

        with self._tele("batch", label=name):
            outcome = attempt(run_batch, self._value)

        if isinstance(outcome, Failure):
            self._capture(name, seq, outcome.error)
        else:
            self._value = outcome.value
        return self

    # --- Terminal operations ---

    def use(
        self,
        step: Callable[[T], object],
        label: str | None = None,
        *,
        throw_if_errors: bool = False,
    ) -> T:
        """Hand the carried value to an observer and return the value.

        The observer's return value is ignored and never committed. A failure
        in the observer is re-raised or recorded like in ``process``, but the
        recovery function is not applied.

        Raises:
            AggregateStepError: When ``throw_if_errors`` is set and failures
                were captured earlier; raised before the observer runs.
        """
        if throw_if_errors and self._errors:
            raise AggregateStepError(self._errors)

        seq, name = self._begin(label, self._config.label_prefix)
        if self._short_circuited(name):
            return self._value

        with self._tele("step", label=name):
            outcome = attempt(step, self._value)

        if isinstance(outcome, Failure):
            self._capture(name, seq, outcome.error, recover=False)
        return self._value

    def apply[R](self, step: Callable[[T], R], label: str | None = None) -> R | T:
        """Return ``step(value)`` without committing it.

        On short-circuit, or when the step fails and the failure is captured,
        the carried value (possibly recovered) is returned instead.
        """
        seq, name = self._begin(label, self._config.label_prefix)
        if self._short_circuited(name):
            return self._value

        with self._tele("step", label=name):
            outcome = attempt(step, self._value)

        if isinstance(outcome, Failure):
            self._capture(name, seq, outcome.error)
            return self._value
        return outcome.value

    def finish(self, *, throw_if_errors: bool = False) -> T:
        """Return the carried value.

        Raises:
            AggregateStepError: When ``throw_if_errors`` is set and at least
                one failure was captured.
        """
        if throw_if_errors and self._errors:
            raise AggregateStepError(self._errors)
        return self._value

    # --- Retyping ---

    def process_and_transform[R](
        self,
        select: Callable[[T], R],
        *,
        policy: ErrorPolicy[R] | None = None,
    ) -> PipeResult[R]:
        """Continue the chain with ``select(value)`` as a new carried type.

        ``select`` runs outside any capture boundary: if it raises, the
        exception propagates. Captured failures and call numbering carry over
        to the new pipeline; the policy does not, since a recovery function
        for ``T`` cannot produce an ``R``.
        """
        nxt = PipeResult(
            select(self._value),
            policy,
            errors=self._errors.snapshot(),
            config=self._config,
            telemetry=self._tele,
        )
        nxt._sequence = self._sequence
        return nxt

    # --- Internals ---

    def _begin(self, label: str | None, prefix: str) -> tuple[int, str]:
        self._sequence += 1
        if label is None:
            label = f"{prefix}-{self._sequence}"
        return self._sequence, label

    def _short_circuited(self, name: str) -> bool:
        if self._policy.short_circuit_on_error and self._errors:
            log.debug(
                "Skipping %s: %d failure(s) already captured", name, len(self._errors)
            )
            return True
        return False

    def _capture(
        self, label: str, seq: int, error: Exception, *, recover: bool = True
    ) -> None:
        if not self._policy.ignore_errors:
            raise error

        self._errors.append(ErrorRecord(label=label, error=error, sequence=seq))
        log.log(
            self._config.capture_log_levelno,
            "Captured failure in %s: %s: %s",
            label,
            type(error).__name__,
            error,
        )
        self._tele.count("captured_errors", label=label)

        if recover and self._policy.recovers:
            self._value = self._policy.on_error_return(self._value, error)

    def __repr__(self) -> str:
        return (
            f"PipeResult(value={self._value!r}, errors={len(self._errors)}, "
            f"policy={self._policy!r})"
        )

