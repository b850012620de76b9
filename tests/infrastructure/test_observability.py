"""Structured Logging — JSON shape, extra fields, request id correlation."""

import json
import logging

from fiatramp.infrastructure.observability import (
    JSONFormatter, RequestContextFilter, new_request_id, request_id_var,
    setup_logging,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord("fiatramp.test", logging.INFO, __file__, 1, msg, None, None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


def test_json_formatter_includes_known_extras():
    out = json.loads(JSONFormatter().format(
        _record(order_id="abc", order_number=7, unrelated="x"),
    ))
    assert out["message"] == "hello"
    assert out["level"] == "INFO"
    assert out["order_id"] == "abc"
    assert out["order_number"] == 7
    assert "unrelated" not in out


def test_filter_stamps_current_request_id():
    token = request_id_var.set("req-1")
    try:
        record = _record()
        RequestContextFilter().filter(record)
    finally:
        request_id_var.reset(token)
    assert record.request_id == "req-1"


def test_new_request_id_keeps_sane_header_and_replaces_junk():
    assert new_request_id("abc-123") == "abc-123"
    assert len(new_request_id(None)) == 32
    assert new_request_id("x" * 100) != "x" * 100


def test_setup_logging_is_idempotent():
    setup_logging("DEBUG", "text")
    setup_logging("INFO", "json")
    ours = [h for h in logging.root.handlers if h.get_name() == "fiatramp"]
    assert len(ours) == 1
    assert logging.root.level == logging.INFO
    logging.root.removeHandler(ours[0])


async def test_response_echoes_request_id(client):
    res = await client.get("/api/v1/health/", headers={"X-Request-ID": "trace-42"})
    assert res.headers["X-Request-ID"] == "trace-42"
