from __future__ import annotations

from typing import Any

from homeassistant.components.diagnostics import async_redact_data

from .const import CONF_ACCOUNT_NUMBER, CONF_EMAIL, CONF_PASSWORD
from .runtime_data import get_runtime_data

TO_REDACT = [
    CONF_ACCOUNT_NUMBER,
    CONF_EMAIL,
    CONF_PASSWORD,
    "token",
    "number",
    "maloNumber",
    "meloNumber",
    "integrationDeviceId",
]


async def async_get_config_entry_diagnostics(hass, entry):
    diag: dict[str, Any] = {
        "entry_data": async_redact_data(dict(entry.data), TO_REDACT),
        "entry_options": dict(getattr(entry, "options", {}) or {}),
    }

    try:
        coord = get_runtime_data(hass, entry).coordinator
    except RuntimeError:
        coord = None

    if coord is not None:
        diag["coordinator"] = async_redact_data(coord.collect_metrics(), TO_REDACT)
        if coord.data is not None:
            diag["last_result"] = async_redact_data(coord.data.as_dict(), TO_REDACT)
    return diag
