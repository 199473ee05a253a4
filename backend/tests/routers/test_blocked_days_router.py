from typing import Any, cast

import pytest
from fastapi.routing import APIRoute
from slotbook.deps import get_current_user_id
from slotbook.routers import blocked_days as router
from slotbook.schemas import BlockDayRequest
from slotbook.usecases.blocked_days import BlockOutcome
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession


@pytest.fixture
def audit_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr(router, "emit_audit_log", lambda **kwargs: calls.append(kwargs))
    return calls


@pytest.fixture(autouse=True)
def _fake_repos(monkeypatch: pytest.MonkeyPatch, booking_repo, blocked_repo) -> None:
    monkeypatch.setattr(router, "SqlAlchemyBookingRepository", lambda s: booking_repo)
    monkeypatch.setattr(router, "SqlAlchemyBlockedDayRepository", lambda s: blocked_repo)


def test_blocked_days_router_requires_bearer_token() -> None:
    assert any(dep.dependency == get_current_user_id for dep in router.router.dependencies)
    for route in router.router.routes:
        if not isinstance(route, APIRoute):
            continue
        assert any(dep.call == get_current_user_id for dep in route.dependant.dependencies)


@pytest.mark.asyncio
async def test_block_day_outcomes(dummy_session, audit_calls, booking_repo) -> None:
    session = cast(AsyncSession, dummy_session)
    blocked = await router.block_day(payload=BlockDayRequest(day="2030-01-02"), session=session)
    assert blocked.outcome == BlockOutcome.BLOCKED
    assert blocked.blocked is True

    again = await router.block_day(payload=BlockDayRequest(day="2030-01-02"), session=session)
    assert again.outcome == BlockOutcome.ALREADY_BLOCKED
    assert again.blocked is True

    booking_repo.add(day="2030-01-03", slot="08:00")
    rejected = await router.block_day(payload=BlockDayRequest(day="2030-01-03"), session=session)
    assert rejected.outcome == BlockOutcome.REJECTED_HAS_BOOKINGS
    assert rejected.blocked is False

    assert [c["action"] for c in audit_calls] == ["day.blocked"]


@pytest.mark.asyncio
async def test_block_day_unique_violation_reports_already_blocked(
    dummy_session, audit_calls, monkeypatch: pytest.MonkeyPatch
) -> None:
    async def racing_block(*args: object, **kwargs: object) -> Any:
        raise IntegrityError(None, None, Exception("duplicate day"))  # type: ignore[arg-type]

    monkeypatch.setattr(router.blocked_day_usecase, "block_day", racing_block)
    result = await router.block_day(payload=BlockDayRequest(day="2030-01-02"), session=cast(AsyncSession, dummy_session))
    assert result.outcome == BlockOutcome.ALREADY_BLOCKED
    assert audit_calls == []


@pytest.mark.asyncio
async def test_list_and_unblock(dummy_session, audit_calls, blocked_repo) -> None:
    session = cast(AsyncSession, dummy_session)
    record = await blocked_repo.create("2030-01-02")
    listed = await router.list_blocked_days(session=session)
    assert [(r.blocked_day_id, r.day, r.blocked) for r in listed] == [(record.id, "2030-01-02", True)]

    removed = await router.unblock_day(blocked_day_id=record.id, session=session)
    assert removed.message == "blocked day removed"
    assert blocked_repo.rows == {}

    # Unknown ids are accepted silently.
    again = await router.unblock_day(blocked_day_id=record.id, session=session)
    assert again.message == "blocked day removed"
    assert [c["action"] for c in audit_calls] == ["day.unblocked"]
