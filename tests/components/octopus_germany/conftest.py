"""Shared pytest fixtures for the Octopus Germany custom integration."""

from __future__ import annotations

from typing import Any

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry

from homeassistant.core import HomeAssistant

from custom_components.octopus_germany.const import (
    CONF_ACCOUNT_NUMBER,
    CONF_EMAIL,
    CONF_PASSWORD,
    DOMAIN,
)

from .helpers import ACCOUNT_NUMBER


@pytest.fixture
def no_sleep(monkeypatch) -> list[float]:
    """Record backoff sleeps in the API module instead of waiting."""
    from custom_components.octopus_germany import api

    delays: list[float] = []
    real_sleep = api.asyncio.sleep

    async def _sleep(delay: float) -> None:
        delays.append(delay)
        await real_sleep(0)

    monkeypatch.setattr(api.asyncio, "sleep", _sleep)
    return delays


@pytest.fixture
def entry_data() -> dict[str, Any]:
    return {
        CONF_EMAIL: "user@example.com",
        CONF_PASSWORD: "secret",
        CONF_ACCOUNT_NUMBER: ACCOUNT_NUMBER,
    }


@pytest.fixture
def config_entry(hass: HomeAssistant, entry_data) -> MockConfigEntry:
    """Provide a config entry for one account added to hass."""
    entry = MockConfigEntry(
        domain=DOMAIN,
        data=entry_data,
        title=f"Octopus Germany {ACCOUNT_NUMBER}",
        unique_id=ACCOUNT_NUMBER,
    )
    entry.add_to_hass(hass)
    return entry


@pytest.fixture
def mock_clientsession(monkeypatch):
    """Stub out the aiohttp client session factory used by the integration."""
    session = object()
    for target in (
        "custom_components.octopus_germany.coordinator.async_get_clientsession",
        "custom_components.octopus_germany.config_flow.async_get_clientsession",
    ):
        monkeypatch.setattr(target, lambda *args, **kwargs: session, raising=False)
    return session
