from __future__ import annotations

import logging

from agora_api.common.logging import (
    ConsoleLogFormatter,
    bind_request_context,
    clear_request_context,
    current_correlation_id,
    log_context,
)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="agora_api.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="proxy.http.forwarded",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_log_context_drops_unset_fields() -> None:
    assert log_context(user_id="u-1", workspace_id=None, attempt=2) == {
        "user_id": "u-1",
        "attempt": 2,
    }
    assert log_context(event="user.created") == {"event_type": "user.created"}


def test_formatter_renders_correlation_id_and_extras() -> None:
    bind_request_context("req-123")
    try:
        line = ConsoleLogFormatter().format(
            _record(deployment_id="d-1", required=["b", "a"], found=None)
        )
    finally:
        clear_request_context()

    assert "[cid=req-123]" in line
    assert "proxy.http.forwarded" in line
    assert "deployment_id=d-1" in line
    assert "required=a,b" in line
    assert "found=null" in line
    assert line.split(" ", 1)[0].endswith("Z")


def test_formatter_without_context_uses_placeholder() -> None:
    clear_request_context()

    line = ConsoleLogFormatter().format(_record())

    assert "[cid=-]" in line
    assert current_correlation_id() is None
