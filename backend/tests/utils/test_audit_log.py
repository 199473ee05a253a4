import json
from typing import Any, List

import pytest
from slotbook.models import BookingStatus
from slotbook.utils import audit_log
from slotbook.utils.request_id import set_request_id


def test_emit_audit_log_outputs_json(monkeypatch: pytest.MonkeyPatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    set_request_id("req-123")
    try:
        audit_log.emit_audit_log(
            action="booking.completed",
            initiator="staff",
            booking_id=1,
            external_ref="ref-1",
            day="2030-01-02",
            slot="08:00",
            user_id=4,
            status_from=BookingStatus.SCHEDULED,
            status_to=BookingStatus.COMPLETED,
        )
    finally:
        set_request_id(None)

    assert len(messages) == 1
    payload = json.loads(messages[0])
    assert payload["action"] == "booking.completed"
    assert payload["initiator"] == "staff"
    assert payload["request_id"] == "req-123"
    assert payload["status_from"] == "scheduled"
    assert payload["status_to"] == "completed"
    assert "timestamp" in payload


def test_emit_audit_log_drops_empty_fields(monkeypatch: pytest.MonkeyPatch) -> None:
    messages: List[str] = []

    class DummyLogger:
        def info(self, message: str) -> None:
            messages.append(message)

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())
    audit_log.emit_audit_log(action="booking.purged", initiator="staff", extra={"deleted": 3})
    payload = json.loads(messages[0])
    assert payload["deleted"] == 3
    assert "booking_id" not in payload
    assert "request_id" not in payload


def test_emit_audit_log_raises_on_logger_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    class DummyLogger:
        def info(self, _: Any) -> None:
            raise ValueError("fail")

    monkeypatch.setattr(audit_log, "_audit_logger", DummyLogger())

    with pytest.raises(RuntimeError):
        audit_log.emit_audit_log(action="day.blocked", initiator="staff", day="2030-01-02")
