"""Observability — JSON log records and handler installation."""

import json
import logging

from crate_api.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "crate_api.test", logging.INFO, __file__, 1, "saved %s", ("crate",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_record_includes_known_context():
    line = JSONFormatter().format(
        _record(collection_id="c1", duration_ms=1.5, password="hunter2"),
    )
    entry = json.loads(line)
    assert entry["message"] == "saved crate"
    assert entry["level"] == "INFO"
    assert entry["collection_id"] == "c1"
    assert entry["duration_ms"] == 1.5
    assert "password" not in entry


def test_setup_logging_replaces_its_handler():
    root = logging.getLogger()
    before = len(root.handlers)
    first = setup_logging("DEBUG", "text")
    second = setup_logging("INFO", "json")
    try:
        assert first not in root.handlers
        assert second in root.handlers
        assert len(root.handlers) == before + 1
        assert isinstance(second.formatter, JSONFormatter)
    finally:
        root.removeHandler(second)
