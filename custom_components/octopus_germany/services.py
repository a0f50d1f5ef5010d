from __future__ import annotations

from typing import TYPE_CHECKING

import voluptuous as vol

from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv

from .const import CONF_ACCOUNT_NUMBER, DOMAIN
from .runtime_data import iter_coordinators

if TYPE_CHECKING:
    from .coordinator import OctopusGermanyCoordinator

SERVICE_SET_DEVICE_SUSPENSION = "set_device_suspension"
SERVICE_SET_VEHICLE_CHARGE_PREFERENCES = "set_vehicle_charge_preferences"

REGISTERED_SERVICES = (
    SERVICE_SET_DEVICE_SUSPENSION,
    SERVICE_SET_VEHICLE_CHARGE_PREFERENCES,
)

SOC = vol.All(vol.Coerce(int), vol.Range(min=0, max=100))

SUSPENSION_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_ACCOUNT_NUMBER): cv.string,
        vol.Required("device_id"): cv.string,
        vol.Required("suspend"): cv.boolean,
    }
)
CHARGE_PREFERENCES_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_ACCOUNT_NUMBER): cv.string,
        vol.Required("weekday_target_soc"): SOC,
        vol.Required("weekend_target_soc"): SOC,
        vol.Required("weekday_target_time"): cv.string,
        vol.Required("weekend_target_time"): cv.string,
    }
)


def _resolve_coordinator(
    hass: HomeAssistant, call: ServiceCall
) -> OctopusGermanyCoordinator:
    account = call.data.get(CONF_ACCOUNT_NUMBER)
    coordinators = iter_coordinators(
        hass, account_numbers={account} if account else None
    )
    if not coordinators:
        raise ServiceValidationError(
            f"No loaded Octopus Germany account matches {account or 'the request'}"
        )
    if len(coordinators) > 1:
        raise ServiceValidationError(
            "Several Octopus Germany accounts are loaded; pass account_number"
        )
    return coordinators[0]


def async_setup_services(hass: HomeAssistant) -> None:
    """Register integration services once."""

    if hass.services.has_service(DOMAIN, SERVICE_SET_DEVICE_SUSPENSION):
        return

    async def _set_device_suspension(call: ServiceCall) -> None:
        coord = _resolve_coordinator(hass, call)
        ok = await coord.async_set_device_suspension(
            call.data["device_id"], call.data["suspend"]
        )
        if not ok:
            raise HomeAssistantError(
                f"Failed to change suspension of device {call.data['device_id']}"
            )

    async def _set_vehicle_charge_preferences(call: ServiceCall) -> None:
        coord = _resolve_coordinator(hass, call)
        ok = await coord.async_set_vehicle_charge_preferences(
            call.data["weekday_target_soc"],
            call.data["weekend_target_soc"],
            call.data["weekday_target_time"],
            call.data["weekend_target_time"],
        )
        if not ok:
            raise HomeAssistantError("Failed to set vehicle charge preferences")

    hass.services.async_register(
        DOMAIN,
        SERVICE_SET_DEVICE_SUSPENSION,
        _set_device_suspension,
        schema=SUSPENSION_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_SET_VEHICLE_CHARGE_PREFERENCES,
        _set_vehicle_charge_preferences,
        schema=CHARGE_PREFERENCES_SCHEMA,
    )


def async_unload_services(hass: HomeAssistant) -> None:
    for service in REGISTERED_SERVICES:
        if hass.services.has_service(DOMAIN, service):
            hass.services.async_remove(DOMAIN, service)
