"""Tests for single-flight credential refresh."""

import asyncio

import pytest

from stellar.infrastructure.auth import RefreshGate, RefreshState


def counting_refresh(outcome: bool, delay: float = 0.01):
    calls = {"count": 0}

    async def refresh() -> bool:
        calls["count"] += 1
        await asyncio.sleep(delay)
        return outcome

    return refresh, calls


@pytest.mark.asyncio
async def test_concurrent_waiters_share_one_refresh():
    refresh, calls = counting_refresh(True)
    gate = RefreshGate(refresh=refresh)

    results = await asyncio.gather(*(gate.wait_for_refresh() for _ in range(5)))

    assert results == [True] * 5
    assert calls["count"] == 1
    assert gate.refresh_count == 1
    assert gate.state is RefreshState.IDLE


@pytest.mark.asyncio
async def test_state_is_authenticating_while_in_flight():
    refresh, _ = counting_refresh(True, delay=0.05)
    gate = RefreshGate(refresh=refresh)

    waiter = asyncio.create_task(gate.wait_for_refresh())
    await asyncio.sleep(0.01)

    assert gate.state is RefreshState.AUTHENTICATING
    assert await waiter is True
    assert gate.state is RefreshState.IDLE


@pytest.mark.asyncio
async def test_settled_refresh_allows_a_new_one():
    refresh, calls = counting_refresh(True)
    gate = RefreshGate(refresh=refresh)

    await gate.wait_for_refresh()
    await gate.wait_for_refresh()

    assert calls["count"] == 2


@pytest.mark.asyncio
async def test_failed_refresh_notifies_observers_once():
    refresh, calls = counting_refresh(False)
    gate = RefreshGate(refresh=refresh)
    notifications: list[str] = []
    gate.on_session_expired(lambda: notifications.append("expired"))

    results = await asyncio.gather(*(gate.wait_for_refresh() for _ in range(3)))

    assert results == [False, False, False]
    assert calls["count"] == 1
    assert notifications == ["expired"]


@pytest.mark.asyncio
async def test_raising_refresh_counts_as_failure():
    async def refresh() -> bool:
        raise RuntimeError("network down")

    gate = RefreshGate(refresh=refresh)
    notifications: list[str] = []
    gate.on_session_expired(lambda: notifications.append("expired"))

    assert await gate.wait_for_refresh() is False
    assert notifications == ["expired"]
    assert gate.state is RefreshState.IDLE


@pytest.mark.asyncio
async def test_unsubscribe_stops_notifications():
    refresh, _ = counting_refresh(False)
    gate = RefreshGate(refresh=refresh)
    notifications: list[str] = []
    unsubscribe = gate.on_session_expired(lambda: notifications.append("expired"))

    unsubscribe()
    unsubscribe()
    await gate.wait_for_refresh()

    assert notifications == []


@pytest.mark.asyncio
async def test_failing_observer_does_not_block_others():
    refresh, _ = counting_refresh(False)
    gate = RefreshGate(refresh=refresh)
    notifications: list[str] = []

    def broken() -> None:
        raise RuntimeError("observer bug")

    gate.on_session_expired(broken)
    gate.on_session_expired(lambda: notifications.append("expired"))

    assert await gate.wait_for_refresh() is False
    assert notifications == ["expired"]


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_refresh():
    refresh, calls = counting_refresh(True, delay=0.05)
    gate = RefreshGate(refresh=refresh)

    impatient = asyncio.create_task(gate.wait_for_refresh())
    patient = asyncio.create_task(gate.wait_for_refresh())
    await asyncio.sleep(0.01)
    impatient.cancel()

    assert await patient is True
    assert calls["count"] == 1
    with pytest.raises(asyncio.CancelledError):
        await impatient
