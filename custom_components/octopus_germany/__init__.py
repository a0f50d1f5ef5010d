from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .const import DOMAIN
from .runtime_data import OctopusRuntimeData, get_runtime_data

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

_LOGGER = logging.getLogger(__name__)

__all__ = ["DOMAIN", "async_setup_entry", "async_unload_entry"]


async def _async_update_listener(hass: HomeAssistant, entry: ConfigEntry) -> None:
    await hass.config_entries.async_reload(entry.entry_id)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    # local imports keep the API modules importable without Home Assistant
    from .coordinator import OctopusGermanyCoordinator
    from .services import async_setup_services

    coord = OctopusGermanyCoordinator(hass, entry.data, config_entry=entry)
    entry.runtime_data = OctopusRuntimeData(coordinator=coord)
    await coord.async_config_entry_first_refresh()

    # The timer forces a real login every interval, whatever the decoded expiry says
    coord.client.start_auto_refresh()
    entry.async_on_unload(entry.add_update_listener(_async_update_listener))

    async_setup_services(hass)
    _LOGGER.debug("Octopus Germany account %s set up", coord.account_number)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    from .services import async_unload_services

    try:
        coord = get_runtime_data(hass, entry).coordinator
    except RuntimeError:
        coord = None
    if coord is not None:
        await coord.async_shutdown()
    entry.runtime_data = None

    remaining = [
        other
        for other in hass.config_entries.async_entries(DOMAIN)
        if other.entry_id != entry.entry_id
        and isinstance(getattr(other, "runtime_data", None), OctopusRuntimeData)
    ]
    if not remaining:
        async_unload_services(hass)
    return True
