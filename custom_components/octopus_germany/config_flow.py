from __future__ import annotations

import logging
from typing import Any

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import callback
from homeassistant.data_entry_flow import FlowResult
from homeassistant.helpers.aiohttp_client import async_get_clientsession
from homeassistant.helpers.selector import selector

from .api import OctopusGermanyClient
from .const import (
    CONF_ACCOUNT_NUMBER,
    CONF_EMAIL,
    CONF_PASSWORD,
    DEFAULT_API_TIMEOUT,
    DEFAULT_SCAN_INTERVAL,
    DOMAIN,
    MIN_SCAN_INTERVAL,
    OPT_API_TIMEOUT,
    OPT_LOG_API_RESPONSES,
    OPT_LOG_TOKEN_RESPONSES,
    OPT_SCAN_INTERVAL,
)

_LOGGER = logging.getLogger(__name__)


class OctopusGermanyConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    def __init__(self) -> None:
        self._email: str | None = None
        self._password: str | None = None
        self._accounts: list[str] = []

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        errors: dict[str, str] = {}

        if user_input is not None:
            email = user_input[CONF_EMAIL].strip()
            password = user_input[CONF_PASSWORD]
            client = OctopusGermanyClient(
                async_get_clientsession(self.hass), email, password
            )
            try:
                if not await client.login():
                    errors["base"] = "invalid_auth"
                else:
                    accounts = await client.accounts()
                    if accounts is None:
                        errors["base"] = "cannot_connect"
                    elif not accounts:
                        errors["base"] = "no_accounts"
                    else:
                        self._email = email
                        self._password = password
                        self._accounts = accounts
            except Exception as err:  # noqa: BLE001
                _LOGGER.warning(
                    "Unexpected error during Octopus Germany authentication: %s", err
                )
                errors["base"] = "unknown"

            if not errors:
                if len(self._accounts) == 1:
                    return await self._async_create_account_entry(self._accounts[0])
                return await self.async_step_account()

        schema = vol.Schema(
            {
                vol.Required(CONF_EMAIL, default=self._email or ""): selector(
                    {"text": {"type": "email"}}
                ),
                vol.Required(CONF_PASSWORD): selector({"text": {"type": "password"}}),
            }
        )
        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)

    async def async_step_account(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        if user_input is not None:
            return await self._async_create_account_entry(
                user_input[CONF_ACCOUNT_NUMBER]
            )

        schema = vol.Schema(
            {vol.Required(CONF_ACCOUNT_NUMBER): vol.In(self._accounts)}
        )
        return self.async_show_form(step_id="account", data_schema=schema)

    async def _async_create_account_entry(self, account_number: str) -> FlowResult:
        await self.async_set_unique_id(account_number)
        self._abort_if_unique_id_configured()
        return self.async_create_entry(
            title=f"Octopus Germany {account_number}",
            data={
                CONF_EMAIL: self._email,
                CONF_PASSWORD: self._password,
                CONF_ACCOUNT_NUMBER: account_number,
            },
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: ConfigEntry):
        return OptionsFlowHandler()


class OptionsFlowHandler(config_entries.OptionsFlow):
    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> FlowResult:
        if user_input is not None:
            return self.async_create_entry(data=user_input)

        options = self.config_entry.options
        schema = vol.Schema(
            {
                vol.Optional(
                    OPT_SCAN_INTERVAL,
                    default=options.get(OPT_SCAN_INTERVAL, DEFAULT_SCAN_INTERVAL),
                ): vol.All(vol.Coerce(int), vol.Range(min=MIN_SCAN_INTERVAL)),
                vol.Optional(
                    OPT_API_TIMEOUT,
                    default=options.get(OPT_API_TIMEOUT, DEFAULT_API_TIMEOUT),
                ): vol.All(vol.Coerce(int), vol.Range(min=5, max=120)),
                vol.Optional(
                    OPT_LOG_API_RESPONSES,
                    default=options.get(OPT_LOG_API_RESPONSES, False),
                ): bool,
                vol.Optional(
                    OPT_LOG_TOKEN_RESPONSES,
                    default=options.get(OPT_LOG_TOKEN_RESPONSES, False),
                ): bool,
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)
