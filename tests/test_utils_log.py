import json

import structlog

from trendscope.utils.log import (
    E_ORDER_PROPOSED,
    TelemetryContext,
    log_event,
    new_id,
    setup_logger,
)


class DummyLogger:
    def __init__(self):
        self.bound = {}
        self.records = []

    def bind(self, **kwargs):
        self.bound.update(kwargs)
        return self

    def info(self, *args, **fields):
        event = args[0] if args else fields.pop("event")
        fields.pop("event", None)
        record = {"event": event, **self.bound, **fields}
        self.records.append(record)


def test_log_event_binds_only_non_none_fields(monkeypatch):
    logger = DummyLogger()
    monkeypatch.setattr(structlog, "get_logger", lambda: logger)
    ctx = TelemetryContext(run_id="run123", symbol="EURUSD", profile=None, timeframe="1hour")
    log_event(E_ORDER_PROPOSED, ctx, extra="foo")

    event = logger.records[0]
    assert event["run_id"] == "run123"
    assert event["symbol"] == "EURUSD"
    assert "profile" not in event
    assert event["timeframe"] == "1hour"
    assert event["extra"] == "foo"
    assert event["event"] == E_ORDER_PROPOSED


def test_log_event_without_context(monkeypatch):
    logger = DummyLogger()
    monkeypatch.setattr(structlog, "get_logger", lambda: logger)
    log_event("custom", bars=3)
    assert logger.records == [{"event": "custom", "bars": 3}]


def test_new_id_prefix():
    a, b = new_id("run"), new_id("run")
    assert a.startswith("run_")
    assert len(a) == len("run_") + 8
    assert a != b


def test_setup_logger_emits_json_to_stderr(capsys):
    setup_logger("INFO")
    log_event("sample_event", TelemetryContext(run_id="r1"), value=1)
    err = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(err)
    assert record["event"] == "sample_event"
    assert record["run_id"] == "r1"
    assert record["level"] == "info"


def test_setup_logger_filters_below_level(capsys):
    setup_logger("WARNING")
    log_event("quiet")
    assert "quiet" not in capsys.readouterr().err
