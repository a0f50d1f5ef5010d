from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Any, Mapping

from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator, UpdateFailed
from homeassistant.util import dt as dt_util

from .api import APIResult, OctopusGermanyClient
from .const import (
    CONF_ACCOUNT_NUMBER,
    CONF_EMAIL,
    CONF_PASSWORD,
    DEFAULT_API_TIMEOUT,
    DEFAULT_SCAN_INTERVAL,
    DEVICE_ACTION_SUSPEND,
    DEVICE_ACTION_UNSUSPEND,
    DOMAIN,
    MIN_SCAN_INTERVAL,
    OPT_API_TIMEOUT,
    OPT_LOG_API_RESPONSES,
    OPT_LOG_TOKEN_RESPONSES,
    OPT_SCAN_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)


def _int_option(options: Mapping[str, Any], key: str, default: int) -> int:
    try:
        return int(options.get(key, default))
    except (TypeError, ValueError):
        return default


class OctopusGermanyCoordinator(DataUpdateCoordinator[APIResult]):
    def __init__(self, hass: HomeAssistant, config, config_entry=None):
        self.account_number = str(config[CONF_ACCOUNT_NUMBER])
        options: Mapping[str, Any] = config_entry.options if config_entry else {}
        timeout = _int_option(options, OPT_API_TIMEOUT, DEFAULT_API_TIMEOUT)
        interval = max(
            MIN_SCAN_INTERVAL,
            _int_option(options, OPT_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL),
        )
        self.client = OctopusGermanyClient(
            async_get_clientsession(hass),
            config[CONF_EMAIL],
            config[CONF_PASSWORD],
            timeout=timeout,
            log_api_responses=bool(options.get(OPT_LOG_API_RESPONSES, False)),
            log_token_responses=bool(options.get(OPT_LOG_TOKEN_RESPONSES, False)),
        )
        self.connected = False
        self.last_success_utc = None
        self.latency_ms: int | None = None
        self._last_error: str | None = None
        super().__init__(
            hass,
            _LOGGER,
            name=DOMAIN,
            update_interval=timedelta(seconds=interval),
            config_entry=config_entry,
        )

    async def _async_update_data(self) -> APIResult:
        t0 = time.monotonic()
        try:
            if not await self.client.ensure_token():
                self.connected = False
                self._last_error = "authentication failed"
                raise UpdateFailed(
                    "Not connected: authentication with Octopus Germany failed"
                )
            result = await self.client.fetch_all_data(self.account_number)
        finally:
            self.latency_ms = int((time.monotonic() - t0) * 1000)

        self.connected = self.client.token_manager.is_valid
        if result is None:
            self._last_error = "fetch_all_data failed"
            raise UpdateFailed(
                f"Error fetching data for account {self.account_number}"
            )
        self._last_error = None
        self.last_success_utc = dt_util.utcnow()
        return result

    async def async_shutdown(self) -> None:
        self.client.close()
        await super().async_shutdown()

    async def async_set_device_suspension(self, device_id: str, suspend: bool) -> bool:
        action = DEVICE_ACTION_SUSPEND if suspend else DEVICE_ACTION_UNSUSPEND
        if await self.client.change_device_suspension(device_id, action) is None:
            return False
        await self.async_request_refresh()
        return True

    async def async_set_vehicle_charge_preferences(
        self,
        weekday_target_soc: int,
        weekend_target_soc: int,
        weekday_target_time: str,
        weekend_target_time: str,
    ) -> bool:
        ok = await self.client.set_vehicle_charge_preferences(
            self.account_number,
            weekday_target_soc,
            weekend_target_soc,
            weekday_target_time,
            weekend_target_time,
        )
        if ok:
            await self.async_request_refresh()
        return ok

    def collect_metrics(self) -> dict[str, Any]:
        data = self.data
        return {
            "account_number": self.account_number,
            "connected": self.connected,
            "last_success": (
                self.last_success_utc.isoformat() if self.last_success_utc else None
            ),
            "latency_ms": self.latency_ms,
            "last_error": self._last_error,
            "device_count": len(data.devices) if data else None,
            "planned_dispatch_count": len(data.planned_dispatches) if data else None,
            "warnings": [err.describe() for err in data.warnings] if data else [],
            **self.client.diagnostics(),
        }
