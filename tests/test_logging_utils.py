import json
import logging

from songlist.logging_utils import (
    OperationContextFilter,
    StructuredFormatter,
    configure_logging,
    current_operation,
    log_event,
    operation_context,
)


def _record(event="song_added", **extra):
    record = logging.LogRecord("songlist", logging.INFO, __file__, 1, event, None, None)
    record.event = event
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_text_formatter_orders_core_fields_first():
    record = _record(title="Imagine")
    OperationContextFilter().filter(record)

    line = StructuredFormatter(json_output=False).format(record)

    assert line.split(" ")[1:5] == ["level=INFO", "event=song_added", "operation=-", "song_id=-"]
    assert line.endswith("title=Imagine")


def test_json_formatter_includes_operation_context():
    with operation_context("delete", 42):
        record = _record("song_deleted")
        OperationContextFilter().filter(record)

    payload = json.loads(StructuredFormatter(json_output=True).format(record))

    assert payload["event"] == "song_deleted"
    assert payload["operation"] == "delete"
    assert payload["song_id"] == "42"


def test_operation_context_is_restored():
    with operation_context("find_all"):
        assert current_operation() == "find_all"
        with operation_context("get_text", 7):
            assert current_operation() == "get_text"
        assert current_operation() == "find_all"

    assert current_operation() == "-"


def test_log_event_passes_fields_as_extra(caplog):
    caplog.set_level(logging.DEBUG, logger="songlist.test")

    log_event(logging.getLogger("songlist.test"), "song_query_completed", level=logging.DEBUG, total=3)

    (record,) = caplog.records
    assert record.event == "song_query_completed"
    assert record.total == 3
    assert record.levelno == logging.DEBUG


def test_configure_logging_installs_structured_handler_once(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "filters", [])
    monkeypatch.setattr(root, "level", root.level)
    monkeypatch.setattr(root, "_songlist_logging_configured", False, raising=False)
    monkeypatch.setenv("LOG_FORMAT", "json")

    configure_logging(level="debug")
    configure_logging(level="error")

    (handler,) = root.handlers
    assert isinstance(handler.formatter, StructuredFormatter)
    assert handler.formatter.json_output is True
    assert root.level == logging.DEBUG


def test_log_event_defaults_to_running_operation(caplog):
    caplog.set_level(logging.INFO, logger="songlist.test")
    logger = logging.getLogger("songlist.test")

    with operation_context("update", 9):
        log_event(logger, "song_updated")
    log_event(logger, "storage_failed", operation="get_text")

    first, second = caplog.records
    assert (first.operation, first.song_id) == ("update", "9")
    assert (second.operation, second.song_id) == ("get_text", "-")
