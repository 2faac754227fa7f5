import logging

import pytest

from azure_text_processor.telemetry import (
    InMemoryReporter,
    TelemetryContext,
    telemetry_enabled,
)

pytestmark = pytest.mark.unit


def test_disabled_by_default_returns_shared_no_op():
    assert not telemetry_enabled()
    reporter = InMemoryReporter()
    ctx = TelemetryContext(reporter)
    assert ctx is TelemetryContext()
    with ctx("anything", x=1):
        ctx.count("c")
        ctx.gauge("g", 1.0)
    assert reporter.timings == {}
    assert reporter.metrics == {}


def test_enabled_records_nested_scopes_and_metrics(monkeypatch):
    monkeypatch.setenv("AZURE_TEXT_PROCESSOR_TELEMETRY", "1")
    reporter = InMemoryReporter()
    ctx = TelemetryContext(reporter)

    with ctx("session.submit", files=2):
        with ctx("api.responses"):
            pass
        ctx.count("session.notification", level="info")

    assert set(reporter.timings) == {"session.submit", "session.submit.api.responses"}
    assert reporter.timings["session.submit"][0][1]["files"] == 2
    assert "session.submit.session.notification" in reporter.metrics
    assert "session.submit" in reporter.get_report()


def test_enabled_without_reporters_is_no_op(monkeypatch):
    monkeypatch.setenv("AZURE_TEXT_PROCESSOR_TELEMETRY", "1")
    assert TelemetryContext() is TelemetryContext()


def test_reporter_errors_are_logged_not_raised(monkeypatch, caplog):
    monkeypatch.setenv("AZURE_TEXT_PROCESSOR_TELEMETRY", "1")

    class _Broken:
        def record_timing(self, scope, duration, **metadata):
            raise RuntimeError("sink down")

        def record_metric(self, scope, value, **metadata):
            raise RuntimeError("sink down")

    ctx = TelemetryContext(_Broken())
    with caplog.at_level(logging.ERROR, logger="azure_text_processor.telemetry"):
        with ctx("scope"):
            ctx.count("c")
    assert "sink down" in caplog.text


def test_gauge_and_parent_scope_metadata(monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    reporter = InMemoryReporter()
    ctx = TelemetryContext(reporter)

    with ctx("files.load"):
        ctx.gauge("queue", 3.0)
        with ctx("decode"):
            pass

    value, metadata = reporter.metrics["files.load.queue"][0]
    assert value == 3.0
    assert metadata["metric_type"] == "gauge"
    _, inner = reporter.timings["files.load.decode"][0]
    assert inner["parent_scope"] == "files.load"
    _, outer = reporter.timings["files.load"][0]
    assert outer["parent_scope"] is None


def test_empty_scope_name_is_rejected(monkeypatch):
    monkeypatch.setenv("AZURE_TEXT_PROCESSOR_TELEMETRY", "1")
    ctx = TelemetryContext(InMemoryReporter())
    with pytest.raises(ValueError, match="non-empty"):
        with ctx(""):
            pass
