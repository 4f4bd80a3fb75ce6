"""Property-based tests for chain composition and error accounting."""

from __future__ import annotations

from functools import reduce

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from pipekit import AggregateStepError, ErrorPolicy, PipeResult, PipeSegment

pytestmark = pytest.mark.unit

_OPS = {
    "add": lambda n: lambda x: x + n,
    "mul": lambda n: lambda x: x * n,
    "sub": lambda n: lambda x: x - n,
    "fail": lambda n: _raise,
}


def _raise(_: int) -> int:
    raise ArithmeticError("step failed")


ops = st.lists(
    st.tuples(st.sampled_from(["add", "mul", "sub"]), st.integers(-5, 5)),
    max_size=12,
)
ops_with_failures = st.lists(
    st.tuples(st.sampled_from(sorted(_OPS)), st.integers(-5, 5)),
    max_size=12,
)


def _steps(spec: list[tuple[str, int]]):
    return [_OPS[name](n) for name, n in spec]


@settings(max_examples=75)
@given(start=st.integers(-100, 100), spec=ops)
def test_chaining_equals_direct_composition(start: int, spec) -> None:
    steps = _steps(spec)
    expected = reduce(lambda acc, f: f(acc), steps, start)

    pipe = PipeResult(start)
    for step in steps:
        pipe.process(step)

    assert pipe.finish() == expected
    assert PipeResult(start).process_all(steps).finish() == expected
    segment = reduce(lambda seg, f: seg.process(f), steps, PipeSegment(start))
    assert segment.finish() == expected


@settings(max_examples=75)
@given(start=st.integers(-100, 100), spec=ops_with_failures)
def test_one_record_per_failing_step(start: int, spec) -> None:
    pipe = PipeResult(start, ErrorPolicy(ignore_errors=True))
    for step in _steps(spec):
        pipe.process(step)

    failures = [i + 1 for i, (name, _) in enumerate(spec) if name == "fail"]
    assert [r.sequence for r in pipe.errors] == failures
    assert [r.label for r in pipe.errors] == [f"step-{i}" for i in failures]
    assert pipe.has_errors == bool(failures)


@settings(max_examples=75)
@given(start=st.integers(-100, 100), spec=ops_with_failures)
def test_failing_steps_are_skipped_in_value(start: int, spec) -> None:
    succeeding = [_OPS[name](n) for name, n in spec if name != "fail"]
    expected = reduce(lambda acc, f: f(acc), succeeding, start)

    pipe = PipeResult(start)
    for step in _steps(spec):
        pipe.process(step)

    assert pipe.value == expected


@settings(max_examples=75)
@given(start=st.integers(-100, 100), spec=ops_with_failures)
def test_short_circuit_stops_at_first_failure(start: int, spec) -> None:
    names = [name for name, _ in spec]
    cut = names.index("fail") if "fail" in names else len(spec)
    expected = reduce(lambda acc, f: f(acc), _steps(spec[:cut]), start)

    pipe = PipeResult(start, ErrorPolicy(short_circuit_on_error=True))
    for step in _steps(spec):
        pipe.process(step)

    assert pipe.value == expected
    assert len(pipe.errors) == (1 if cut < len(spec) else 0)


@settings(max_examples=50)
@given(start=st.integers(-100, 100), spec=ops_with_failures)
def test_finish_raises_iff_errors(start: int, spec) -> None:
    pipe = PipeResult(start)
    for step in _steps(spec):
        pipe.process(step)

    assert pipe.finish() == pipe.value
    if pipe.has_errors:
        with pytest.raises(AggregateStepError) as exc_info:
            pipe.finish(throw_if_errors=True)
        assert exc_info.value.records == pipe.errors
    else:
        assert pipe.finish(throw_if_errors=True) == pipe.value
