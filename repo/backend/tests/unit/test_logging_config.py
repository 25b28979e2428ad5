from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from sop.api.middleware.request_id import request_id_context
from sop.infrastructure.observability.logging_config import JsonFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="sop.infrastructure.db.repositories.stock_ledger",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="stock_deduction_clamped",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_copies_extra_fields() -> None:
    record = _record(order_id="ord_001", stock_item="Steaks", requested=3, available=1)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "stock_deduction_clamped"
    assert payload["level"] == "WARNING"
    assert payload["order_id"] == "ord_001"
    assert payload["requested"] == 3
    assert payload["available"] == 1
    assert "args" not in payload
    assert "lineno" not in payload


def test_json_formatter_stamps_request_id() -> None:
    token = request_id_context.set("req-log-1")
    try:
        payload = json.loads(JsonFormatter().format(_record()))
    finally:
        request_id_context.reset(token)

    assert payload["request_id"] == "req-log-1"
    assert payload["trace_id"] is None
