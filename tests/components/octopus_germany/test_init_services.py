from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from pytest_homeassistant_custom_component.common import MockConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError

from custom_components.octopus_germany import (
    DOMAIN,
    _async_update_listener,
    async_setup_entry,
    async_unload_entry,
)
from custom_components.octopus_germany.runtime_data import (
    OctopusRuntimeData,
    get_runtime_data,
    iter_coordinators,
)

from .helpers import ACCOUNT_NUMBER


class DummyCoordinator:
    def __init__(self, account_number: str = ACCOUNT_NUMBER) -> None:
        self.account_number = account_number
        self.client = SimpleNamespace(start_auto_refresh=MagicMock(), close=MagicMock())
        self.async_config_entry_first_refresh = AsyncMock()
        self.async_shutdown = AsyncMock()
        self.async_set_device_suspension = AsyncMock(return_value=True)
        self.async_set_vehicle_charge_preferences = AsyncMock(return_value=True)


@pytest.fixture
def dummy_coord(monkeypatch) -> DummyCoordinator:
    coord = DummyCoordinator()
    monkeypatch.setattr(
        "custom_components.octopus_germany.coordinator.OctopusGermanyCoordinator",
        lambda hass_, entry_data, config_entry=None: coord,
    )
    return coord


@pytest.mark.asyncio
async def test_setup_entry_starts_timer_and_registers_services(
    hass: HomeAssistant, config_entry, dummy_coord
) -> None:
    assert await async_setup_entry(hass, config_entry)

    dummy_coord.async_config_entry_first_refresh.assert_awaited_once()
    dummy_coord.client.start_auto_refresh.assert_called_once()
    assert get_runtime_data(hass, config_entry).coordinator is dummy_coord
    assert iter_coordinators(hass) == [dummy_coord]
    assert hass.services.has_service(DOMAIN, "set_device_suspension")
    assert hass.services.has_service(DOMAIN, "set_vehicle_charge_preferences")

    assert await async_unload_entry(hass, config_entry)
    dummy_coord.async_shutdown.assert_awaited_once()
    assert config_entry.runtime_data is None
    assert not hass.services.has_service(DOMAIN, "set_device_suspension")
    dummy_coord.client.close.assert_not_called()


@pytest.mark.asyncio
async def test_setup_entry_registers_only_update_listener_on_unload(
    hass: HomeAssistant, config_entry, dummy_coord, monkeypatch
) -> None:
    on_unload = MagicMock(wraps=config_entry.async_on_unload)
    monkeypatch.setattr(config_entry, "async_on_unload", on_unload)

    assert await async_setup_entry(hass, config_entry)

    on_unload.assert_called_once()
    assert on_unload.call_args.args[0] is not dummy_coord.client.close


@pytest.mark.asyncio
async def test_unload_without_runtime_data(hass: HomeAssistant, config_entry) -> None:
    assert await async_unload_entry(hass, config_entry)
    with pytest.raises(RuntimeError):
        get_runtime_data(hass, config_entry)


@pytest.mark.asyncio
async def test_update_listener_reloads_entry(hass: HomeAssistant, config_entry, monkeypatch) -> None:
    reload = AsyncMock()
    monkeypatch.setattr(hass.config_entries, "async_reload", reload)

    await _async_update_listener(hass, config_entry)

    reload.assert_awaited_once_with(config_entry.entry_id)


@pytest.mark.asyncio
async def test_device_suspension_service(hass: HomeAssistant, config_entry, dummy_coord) -> None:
    await async_setup_entry(hass, config_entry)

    await hass.services.async_call(
        DOMAIN,
        "set_device_suspension",
        {"device_id": "d1", "suspend": True},
        blocking=True,
    )
    dummy_coord.async_set_device_suspension.assert_awaited_once_with("d1", True)

    dummy_coord.async_set_device_suspension.return_value = False
    with pytest.raises(HomeAssistantError):
        await hass.services.async_call(
            DOMAIN,
            "set_device_suspension",
            {"device_id": "d1", "suspend": False},
            blocking=True,
        )
    await async_unload_entry(hass, config_entry)


@pytest.mark.asyncio
async def test_charge_preferences_service(hass: HomeAssistant, config_entry, dummy_coord) -> None:
    await async_setup_entry(hass, config_entry)

    await hass.services.async_call(
        DOMAIN,
        "set_vehicle_charge_preferences",
        {
            "account_number": ACCOUNT_NUMBER,
            "weekday_target_soc": "80",
            "weekend_target_soc": 90,
            "weekday_target_time": "07:00",
            "weekend_target_time": "09:00",
        },
        blocking=True,
    )
    dummy_coord.async_set_vehicle_charge_preferences.assert_awaited_once_with(
        80, 90, "07:00", "09:00"
    )

    with pytest.raises(ServiceValidationError):
        await hass.services.async_call(
            DOMAIN,
            "set_vehicle_charge_preferences",
            {
                "account_number": "A-OTHER",
                "weekday_target_soc": 80,
                "weekend_target_soc": 90,
                "weekday_target_time": "07:00",
                "weekend_target_time": "09:00",
            },
            blocking=True,
        )
    await async_unload_entry(hass, config_entry)


@pytest.mark.asyncio
async def test_service_needs_account_when_several_loaded(
    hass: HomeAssistant, config_entry
) -> None:
    from custom_components.octopus_germany.services import (
        async_setup_services,
        async_unload_services,
    )

    other = MockConfigEntry(domain=DOMAIN, data={}, unique_id="A-OTHER")
    other.add_to_hass(hass)
    config_entry.runtime_data = OctopusRuntimeData(coordinator=DummyCoordinator())
    other.runtime_data = OctopusRuntimeData(coordinator=DummyCoordinator("A-OTHER"))
    async_setup_services(hass)

    with pytest.raises(ServiceValidationError):
        await hass.services.async_call(
            DOMAIN,
            "set_device_suspension",
            {"device_id": "d1", "suspend": True},
            blocking=True,
        )
    assert [c.account_number for c in iter_coordinators(hass, account_numbers={"A-OTHER"})] == [
        "A-OTHER"
    ]
    async_unload_services(hass)
