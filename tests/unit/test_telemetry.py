"""Telemetry context behavior and its use inside pipelines."""

import pytest

from pipekit import ErrorPolicy, PipeResult, PipeSegment, make_pipeline, start_pipeline
from pipekit.telemetry import SimpleReporter, TelemetryContext, TelemetryReporter

pytestmark = pytest.mark.unit


def boom(_):
    raise ValueError("boom")


class TestTelemetryContext:
    def test_disabled_by_default_returns_shared_noop(self):
        ctx = TelemetryContext()
        assert ctx.is_enabled is False
        assert TelemetryContext() is ctx
        with ctx("anything", label="x") as inner:
            assert inner is ctx
        ctx.count("ignored")

    def test_env_flag_enables(self, monkeypatch):
        monkeypatch.setenv("PIPEKIT_TELEMETRY", "1")
        assert TelemetryContext().is_enabled is True

    def test_explicit_disable_beats_env(self, monkeypatch):
        monkeypatch.setenv("PIPEKIT_TELEMETRY", "1")
        assert TelemetryContext(enabled=False).is_enabled is False

    def test_nested_scopes_build_dotted_paths(self, telemetry, reporter):
        with telemetry("outer"), telemetry("inner", label="x"):
            telemetry.count("hits")

        assert set(reporter.timings) == {"outer", "outer.inner"}
        (_, meta), = reporter.timings["outer.inner"]
        assert meta["depth"] == 1
        assert meta["parent_scope"] == "outer"
        assert meta["label"] == "x"
        assert reporter.metrics["outer.inner.hits"][0][0] == 1

    def test_empty_scope_name_rejected(self, telemetry):
        with pytest.raises(ValueError), telemetry(""):
            pass

    def test_failing_reporter_does_not_break_scope(self, reporter, caplog):
        class Broken:
            def record_timing(self, scope, duration, **metadata):
                raise RuntimeError("reporter down")

            def record_metric(self, scope, value, **metadata):
                raise RuntimeError("reporter down")

        ctx = TelemetryContext(Broken(), reporter, enabled=True)
        with ctx("work"):
            pass
        ctx.count("n")

        assert "work" in reporter.timings
        assert "Telemetry reporter 'Broken' failed" in caplog.text

    def test_simple_reporter_satisfies_protocol(self):
        assert isinstance(SimpleReporter(), TelemetryReporter)


class TestPipelineTelemetry:
    def test_steps_are_timed_with_labels(self, telemetry, reporter):
        (
            PipeResult(1, telemetry=telemetry)
            .process(lambda x: x + 1, "inc")
            .process_all([lambda x: x * 2], "double")
            .use(lambda x: None, "look")
        )

        step_labels = [meta["label"] for _, meta in reporter.timings["step"]]
        batch_labels = [meta["label"] for _, meta in reporter.timings["batch"]]
        assert step_labels == ["inc", "look"]
        assert batch_labels == ["double"]

    def test_captures_are_counted(self, telemetry, reporter):
        (
            PipeResult(1, telemetry=telemetry)
            .process(boom, "a")
            .process(boom, "b")
        )
        counted = [
            (v, meta["label"]) for v, meta in reporter.metrics["captured_errors"]
        ]
        assert counted == [(1, "a"), (1, "b")]

    def test_skipped_steps_are_not_timed(self, telemetry, reporter):
        (
            PipeResult(1, ErrorPolicy(short_circuit_on_error=True), telemetry=telemetry)
            .process(boom, "fails")
            .process(lambda x: x, "skipped")
        )
        assert [meta["label"] for _, meta in reporter.timings["step"]] == ["fails"]

    def test_retyped_pipeline_keeps_telemetry(self, telemetry, reporter):
        PipeResult(1, telemetry=telemetry).process_and_transform(str).process(
            str.upper, "upper"
        )
        assert [meta["label"] for _, meta in reporter.timings["step"]] == ["upper"]

    def test_report_mentions_scopes(self, telemetry, reporter):
        PipeResult(1, telemetry=telemetry).process(boom, "a")
        report = reporter.get_report()
        assert "step" in report
        assert "captured_errors" in report

    def test_env_enabled_pipeline_exposes_collected_data(self, monkeypatch):
        monkeypatch.setenv("PIPEKIT_TELEMETRY", "1")

        pipe = start_pipeline(lambda: 1).process(lambda x: x // 0, "div")

        assert pipe.telemetry.is_enabled
        (collector,) = pipe.telemetry.reporters
        captured = collector.metrics["captured_errors"]
        assert [meta["label"] for _, meta in captured] == ["div"]
        assert [meta["label"] for _, meta in collector.timings["step"]] == ["div"]

    def test_entry_points_share_a_given_context(self, telemetry, reporter):
        start_pipeline(lambda: 1, telemetry=telemetry).process(lambda x: x, "a")
        make_pipeline(2, telemetry=telemetry).process(lambda x: x, "b")
        make_pipeline("3", int, telemetry=telemetry).process(lambda x: x, "c")
        PipeSegment(4).to_result(telemetry=telemetry).process(lambda x: x, "d")

        labels = [meta["label"] for _, meta in reporter.timings["step"]]
        assert labels == ["a", "b", "c", "d"]

    def test_disabled_pipeline_uses_shared_noop(self):
        assert start_pipeline(lambda: 1).telemetry is TelemetryContext()
