"""Entry points: start a pipeline from a producer or an existing value."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, overload

from pipekit.config import current_config
from pipekit.policy import ErrorPolicy
from pipekit.result import PipeResult
from pipekit.segment import PipeSegment

if TYPE_CHECKING:
    from collections.abc import Callable

    from pipekit.telemetry import TelemetryContextProtocol


def start_pipeline[T](
    producer: Callable[[], T],
    *,
    ignore_errors: bool | None = None,
    on_error_return: Callable[[T, BaseException], T] | None = None,
    short_circuit_on_error: bool | None = None,
    telemetry: TelemetryContextProtocol | None = None,
) -> PipeResult[T]:
    """Call ``producer`` once and start an error-aware pipeline on its result.

    Flags left as ``None`` take their defaults from the active configuration
    (see ``pipekit.config``). A failure in ``producer`` propagates.

    Example:
        total = (
            start_pipeline(lambda: 4, ignore_errors=True)
            .process(lambda x: x // 0, label="divide")
            .finish()
        )
    """
    policy = ErrorPolicy.from_config(
        current_config(),
        ignore_errors=ignore_errors,
        on_error_return=on_error_return,
        short_circuit_on_error=short_circuit_on_error,
    )
    return PipeResult(producer(), policy, telemetry=telemetry)


@overload
def make_pipeline[T](
    value: T, *, telemetry: TelemetryContextProtocol | None = ...
) -> PipeResult[T]: ...


@overload
def make_pipeline[T, R](
    value: T,
    transform: Callable[[T], R],
    *,
    telemetry: TelemetryContextProtocol | None = ...,
) -> PipeResult[R]: ...


def make_pipeline(
    value: Any,
    transform: Callable[[Any], Any] | None = None,
    *,
    telemetry: TelemetryContextProtocol | None = None,
) -> PipeResult[Any]:
    """Feed ``value`` into a fresh pipeline with the default policy.

    With ``transform``, the pipeline carries ``transform(value)`` instead;
    this is how a finished chain's value moves to a new type. The new
    pipeline never inherits error records. A failure in ``transform``
    propagates.
    """
    if transform is not None:
        value = transform(value)
    return PipeResult(value, telemetry=telemetry)


def process_and_transform[T, R](
    result: PipeResult[T],
    select: Callable[[T], R],
    *,
    policy: ErrorPolicy[R] | None = None,
) -> PipeResult[R]:
    """Function form of ``PipeResult.process_and_transform``."""
    return result.process_and_transform(select, policy=policy)


def start_segment[T](producer: Callable[[], T]) -> PipeSegment[T]:
    """Call ``producer`` once and start a plain pipeline on its result."""
    return PipeSegment(producer())


@overload
def make_segment[T](value: T) -> PipeSegment[T]: ...


@overload
def make_segment[T, R](value: T, transform: Callable[[T], R]) -> PipeSegment[R]: ...


def make_segment(
    value: Any, transform: Callable[[Any], Any] | None = None
) -> PipeSegment[Any]:
    """Feed ``value`` (or ``transform(value)``) into a plain pipeline."""
    if transform is not None:
        value = transform(value)
    return PipeSegment(value)
