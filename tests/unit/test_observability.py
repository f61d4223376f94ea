"""Unit tests for structured events and the StatsD client."""

import json
import logging

import pytest

from skiptrace.observability import Observability, StatsdClient
from skiptrace.settings import get_settings


class RecordingStatsd:
    def __init__(self):
        self.sent = []

    def send(self, metric, value, kind, tags=None):
        self.sent.append((metric, value, kind, tags))


@pytest.fixture
def settings():
    return get_settings()


def test_emit_event_logs_json(settings, caplog):
    obs = Observability(settings=settings, component="dedupe")
    with caplog.at_level(logging.INFO, logger="skiptrace.observability"):
        payload = obs.emit_event("dedupe.completed", received=3, kept=2)

    logged = json.loads(caplog.records[-1].getMessage())
    assert logged == payload
    assert logged["component"] == "dedupe"
    assert logged["service"] == "skiptrace-core"
    assert (logged["received"], logged["kept"]) == (3, 2)


def test_emit_event_plain_text(settings, caplog):
    plain = settings.model_copy(
        update={"observability": settings.observability.model_copy(update={"structured_logging": False})}
    )
    obs = Observability(settings=plain, component="reports")
    with caplog.at_level(logging.INFO, logger="skiptrace.observability"):
        obs.emit_event("report.generated", results=2)
    assert caplog.records[-1].getMessage() == "report.generated results=2"


def test_metrics_are_noops_without_client(settings):
    obs = Observability(settings=settings)
    obs.increment("reports.generated")
    obs.record_timing("reports.score.duration_ms", 12.5)


def test_stage_records_timing_and_counts(settings):
    statsd = RecordingStatsd()
    obs = Observability(settings=settings, component="reports", statsd=statsd)

    with obs.stage("verify", pooled=4) as stage:
        stage["entities"] = 3

    metric, value, kind, _ = statsd.sent[-1]
    assert metric == "reports.verify.duration_ms"
    assert kind == "ms"
    assert value >= 0


def test_stage_marks_failures(settings, caplog):
    obs = Observability(settings=settings, component="reports")
    with caplog.at_level(logging.INFO, logger="skiptrace.observability"):
        with pytest.raises(RuntimeError):
            with obs.stage("score"):
                raise RuntimeError("boom")
    assert json.loads(caplog.records[-1].getMessage())["failed"] is True


@pytest.mark.parametrize(
    ("value", "kind", "tags", "expected"),
    [
        (1.0, "c", None, "skiptrace.reports.generated:1|c"),
        (12.5, "ms", {"stage": "score"}, "skiptrace.reports.generated:12.5|ms|#stage:score"),
        (0.0, "c", {"b": "2", "a": "1"}, "skiptrace.reports.generated:0|c|#a:1,b:2"),
    ],
)
def test_statsd_line_format(value, kind, tags, expected):
    client = StatsdClient(host="127.0.0.1", port=8125, prefix="skiptrace")
    assert client.format("reports.generated", value, kind, tags) == expected
