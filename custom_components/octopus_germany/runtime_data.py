from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .const import DOMAIN

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .coordinator import OctopusGermanyCoordinator


@dataclass(slots=True)
class OctopusRuntimeData:
    """Runtime objects attached to a loaded config entry."""

    coordinator: OctopusGermanyCoordinator


def get_runtime_data(hass: HomeAssistant, entry: ConfigEntry) -> OctopusRuntimeData:
    """Return runtime data for an entry."""

    runtime_data = getattr(entry, "runtime_data", None)
    if isinstance(runtime_data, OctopusRuntimeData):
        return runtime_data
    raise RuntimeError(f"Missing runtime data for entry {entry.entry_id}")


def iter_coordinators(
    hass: HomeAssistant, *, account_numbers: set[str] | None = None
) -> list[OctopusGermanyCoordinator]:
    """Return coordinators from loaded config entries."""

    coordinators: list[OctopusGermanyCoordinator] = []
    seen: set[str] = set()
    for entry in hass.config_entries.async_entries(DOMAIN):
        runtime_data = getattr(entry, "runtime_data", None)
        if not isinstance(runtime_data, OctopusRuntimeData):
            continue
        coord = runtime_data.coordinator
        account = str(coord.account_number)
        if account_numbers and account not in account_numbers:
            continue
        if account in seen:
            continue
        seen.add(account)
        coordinators.append(coord)
    return coordinators
