"""Token validity, expiry resolution and the scheduled refresh timer."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from custom_components.octopus_germany import token_manager as tm_mod
from custom_components.octopus_germany.token_manager import (
    TokenManager,
    _decode_jwt_exp,
)

from .helpers import build_jwt

NOW = 1_700_000_000.0


@pytest.fixture
def clock(monkeypatch) -> SimpleNamespace:
    clock = SimpleNamespace(now=NOW)
    monkeypatch.setattr(tm_mod, "time", SimpleNamespace(time=lambda: clock.now))
    return clock


def test_empty_manager_is_invalid() -> None:
    manager = TokenManager()
    assert manager.token is None
    assert manager.is_valid is False
    assert manager.seconds_remaining is None


def test_token_invalid_inside_refresh_margin(clock) -> None:
    manager = TokenManager()
    manager.set_token("abc", NOW + 3600)
    assert manager.is_valid is True

    clock.now = NOW + 3300
    assert manager.is_valid is False
    clock.now = NOW + 3299
    assert manager.is_valid is True
    clock.now = NOW + 3301
    assert manager.is_valid is False
    assert manager.seconds_remaining == 299


def test_set_token_decodes_jwt_expiry(clock) -> None:
    manager = TokenManager()
    manager.set_token(build_jwt(int(NOW) + 7200))
    assert manager.expires_at == NOW + 7200
    assert manager.is_valid is True


def test_set_token_falls_back_to_refresh_interval(clock, caplog) -> None:
    manager = TokenManager(auto_refresh_interval=3600)
    with caplog.at_level("WARNING"):
        manager.set_token("not-a-jwt")
    assert manager.expires_at == NOW + 3600
    assert "fallback expiry of 60 minutes" in caplog.text


def test_explicit_expiry_wins_over_decoded_claim(clock) -> None:
    manager = TokenManager()
    manager.set_token(build_jwt(int(NOW) + 7200), NOW + 900)
    assert manager.expires_at == NOW + 900


def test_expire_and_clear(clock) -> None:
    manager = TokenManager()
    manager.set_token("abc", NOW + 3600)
    manager.expire()
    assert manager.token == "abc"
    assert manager.is_valid is False

    manager.set_token("def", NOW + 3600)
    manager.clear()
    assert manager.token is None
    assert manager.is_valid is False


@pytest.mark.parametrize(
    "token",
    ["", "single-part", "hdr.!!!.sig", f"hdr.{'e30'}.sig"],
)
def test_decode_jwt_exp_rejects_malformed(token: str) -> None:
    assert _decode_jwt_exp(token) is None


@pytest.mark.asyncio
async def test_auto_refresh_expires_token_before_callback() -> None:
    manager = TokenManager(auto_refresh_interval=0)
    manager.set_token("abc", 9_999_999_999)
    seen: list[bool] = []
    called = asyncio.Event()

    async def _refresh() -> None:
        seen.append(manager.is_valid)
        called.set()

    manager.start_auto_refresh(_refresh)
    assert manager.auto_refresh_active is True
    await asyncio.wait_for(called.wait(), 1)

    task = manager._refresh_task
    manager.stop_auto_refresh()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert seen[0] is False
    assert manager.auto_refresh_active is False


@pytest.mark.asyncio
async def test_auto_refresh_survives_callback_errors() -> None:
    manager = TokenManager(auto_refresh_interval=0)
    calls = 0
    done = asyncio.Event()

    async def _refresh() -> None:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("login exploded")
        done.set()

    manager.start_auto_refresh(_refresh)
    await asyncio.wait_for(done.wait(), 1)

    task = manager._refresh_task
    manager.stop_auto_refresh()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert calls >= 2


@pytest.mark.asyncio
async def test_restart_replaces_previous_timer() -> None:
    manager = TokenManager(auto_refresh_interval=3600)

    async def _refresh() -> None:
        return None

    manager.start_auto_refresh(_refresh)
    first = manager._refresh_task
    manager.start_auto_refresh(_refresh)
    second = manager._refresh_task
    assert first is not second
    with pytest.raises(asyncio.CancelledError):
        await first

    manager.stop_auto_refresh()
    with pytest.raises(asyncio.CancelledError):
        await second
    manager.stop_auto_refresh()
    assert manager.auto_refresh_active is False
