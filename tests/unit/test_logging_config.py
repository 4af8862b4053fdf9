"""Unit tests for structured logging and request correlation."""

import json
import logging

from competency.logging_config import DevFormatter, JsonFormatter, RequestIdFilter, request_id_var


def _record(msg: str = "Milestone level computed", **extra) -> logging.LogRecord:
    record = logging.LogRecord("competency.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRequestIdFilter:
    def test_uses_context_var(self):
        token = request_id_var.set("req-42")
        try:
            record = _record()
            RequestIdFilter().filter(record)
            assert record.request_id == "req-42"
        finally:
            request_id_var.reset(token)

    def test_placeholder_outside_request(self):
        record = _record()
        RequestIdFilter().filter(record)
        assert record.request_id == "-"


class TestJsonFormatter:
    def test_scoring_context_is_grouped(self):
        payload = json.loads(
            JsonFormatter().format(_record(user_id="u-1", milestone_id="DR-PC2", milestone_level=2.6))
        )
        assert payload["message"] == "Milestone level computed"
        assert payload["logger"] == "competency.test"
        assert payload["context"] == {"user_id": "u-1", "milestone_id": "DR-PC2"}
        assert payload["milestone_level"] == 2.6
        assert "milestone_id" not in payload

    def test_extras_cannot_replace_base_fields(self):
        payload = json.loads(JsonFormatter().format(_record(level="DR-5", logger="other")))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "competency.test"

    def test_unserializable_context_is_stringified(self):
        payload = json.loads(JsonFormatter().format(_record(case_id=object())))
        assert isinstance(payload["context"]["case_id"], str)

    def test_no_context_key_without_scoring_fields(self):
        assert "context" not in json.loads(JsonFormatter().format(_record(rows=3)))

    def test_request_id_only_when_set(self):
        assert "request_id" not in json.loads(JsonFormatter().format(_record(request_id="-")))
        assert json.loads(JsonFormatter().format(_record(request_id="abc")))["request_id"] == "abc"


class TestDevFormatter:
    def test_appends_context_pairs(self):
        line = DevFormatter().format(_record(request_id="r-9", program_id="p-1", pgy_year=2))
        assert "req=r-9 Milestone level computed" in line
        assert line.endswith("program_id=p-1 pgy_year=2")

    def test_works_without_filter(self):
        assert "req=- Milestone level computed" in DevFormatter().format(_record())
