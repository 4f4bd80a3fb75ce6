"""Tagged results for step execution.

Every step invocation yields either ``Success(value)`` or ``Failure(error)``.
The pipeline's capture, recover and short-circuit rules operate on this
tagged value instead of sprinkling try/except through each operation.
"""

from __future__ import annotations

import dataclasses
import typing

if typing.TYPE_CHECKING:
    from collections.abc import Callable


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A step that returned normally."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A step that raised, holding the exception it raised."""

    error: TFailure


type Result[TSuccess, TFailure] = Success[TSuccess] | Failure[TFailure]


def attempt[TIn, TOut](
    fn: Callable[[TIn], TOut], value: TIn
) -> Success[TOut] | Failure[Exception]:
    """Call ``fn(value)`` and tag the outcome.

    Only ``Exception`` subclasses are turned into a ``Failure``;
    ``KeyboardInterrupt`` and friends keep propagating.
    """
    try:
        return Success(fn(value))
    except Exception as e:
        return Failure(e)


__all__ = ["Failure", "Result", "Success", "attempt"]
