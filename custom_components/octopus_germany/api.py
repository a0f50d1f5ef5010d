from __future__ import annotations

import asyncio
import copy
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import time as dt_time
from enum import Enum
from typing import Any, Callable, Iterable

import aiohttp
import async_timeout

from .cache import MISS, TTLCache
from .const import (
    BACKOFF_INITIAL_DELAY,
    BACKOFF_MAX_DELAY,
    CACHE_KEY_ACCOUNT,
    CACHE_KEY_DEVICES,
    CACHE_KEY_DISPATCHES,
    CACHE_TTLS,
    DEFAULT_API_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEVICE_ACTIONS,
    ERROR_CODE_NOT_FOUND_FOR_ACCOUNT,
    ERROR_CODE_RATE_LIMITED,
    ERROR_CODE_TOKEN_EXPIRED,
    GRAPHQL_ENDPOINT,
    LOGIN_MAX_RETRIES,
    OPTIONAL_SECTIONS,
)
from .queries import (
    ACCOUNT_DISCOVERY_QUERY,
    CHANGE_DEVICE_SUSPENSION_MUTATION,
    COMPREHENSIVE_QUERY,
    DEVICES_QUERY,
    DISPATCHES_QUERY,
    LOGIN_MUTATION,
    SET_VEHICLE_CHARGE_PREFERENCES_TEMPLATE,
)
from .token_manager import TokenManager

_LOGGER = logging.getLogger(__name__)


class OctopusGermanyError(Exception):
    """Base exception for Octopus Germany API failures."""


class OctopusTransportError(OctopusGermanyError):
    """Raised when the API could not be reached within the retry budget."""


class ErrorKind(Enum):
    TRANSIENT_NETWORK = "transient_network"
    RATE_LIMITED = "rate_limited"
    TOKEN_EXPIRED = "token_expired"
    NON_CRITICAL_MISSING_RESOURCE = "non_critical_missing_resource"
    CRITICAL = "critical"
    MALFORMED_RESPONSE = "malformed_response"


class TokenRetry(Enum):
    """Whether an operation may still recover from one token-expiry error."""

    AVAILABLE = "available"
    SPENT = "spent"


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    code: str | None
    path: tuple[str, ...]
    message: str

    @property
    def is_critical(self) -> bool:
        return self.kind is not ErrorKind.NON_CRITICAL_MISSING_RESOURCE

    def describe(self) -> str:
        location = "/".join(self.path) or "-"
        return f"{self.code or 'no code'} at {location}: {self.message}"


@dataclass
class APIResult:
    """Aggregate returned by a comprehensive fetch; sections may be empty."""

    account: dict[str, Any] = field(default_factory=dict)
    devices: list[dict[str, Any]] = field(default_factory=list)
    planned_dispatches: list[dict[str, Any]] = field(default_factory=list)
    completed_dispatches: list[dict[str, Any]] = field(default_factory=list)
    products: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[ClassifiedError] = field(default_factory=list)

    def as_dict(self) -> dict[str, Any]:
        return {
            "account": self.account,
            "devices": self.devices,
            "plannedDispatches": self.planned_dispatches,
            "completedDispatches": self.completed_dispatches,
            "products": self.products,
        }


def classify_error(raw: Any) -> ClassifiedError:
    """Map one raw GraphQL error object onto an ErrorKind."""

    if not isinstance(raw, dict):
        return ClassifiedError(ErrorKind.MALFORMED_RESPONSE, None, (), str(raw))
    extensions = raw.get("extensions")
    code = extensions.get("errorCode") if isinstance(extensions, dict) else None
    raw_path = raw.get("path")
    path = (
        tuple(str(part) for part in raw_path)
        if isinstance(raw_path, (list, tuple))
        else ()
    )
    message = str(raw.get("message") or "Unknown error")

    if code == ERROR_CODE_RATE_LIMITED:
        kind = ErrorKind.RATE_LIMITED
    elif code == ERROR_CODE_TOKEN_EXPIRED:
        kind = ErrorKind.TOKEN_EXPIRED
    elif (
        code == ERROR_CODE_NOT_FOUND_FOR_ACCOUNT
        and path
        and path[0] in OPTIONAL_SECTIONS
    ):
        kind = ErrorKind.NON_CRITICAL_MISSING_RESOURCE
    else:
        kind = ErrorKind.CRITICAL
    return ClassifiedError(kind, str(code) if code else None, path, message)


def classify_errors(response: Any) -> list[ClassifiedError]:
    """Classify every entry of a response's ``errors`` array."""

    if not isinstance(response, dict):
        return []
    errors = response.get("errors")
    if not isinstance(errors, list):
        return []
    return [classify_error(err) for err in errors]


def has_error_kind(errors: Iterable[ClassifiedError], kind: ErrorKind) -> bool:
    return any(err.kind is kind for err in errors)


def _describe(errors: Iterable[ClassifiedError]) -> str:
    return "; ".join(err.describe() for err in errors)


def backoff_delay(
    attempt: int,
    *,
    initial: float = BACKOFF_INITIAL_DELAY,
    maximum: float = BACKOFF_MAX_DELAY,
) -> float:
    """Return the wait in seconds before retry number ``attempt + 1``."""

    return min(initial * (2 ** max(0, attempt)), maximum)


def mask_token(token: str) -> str:
    """Keep the first and last five characters of a token."""

    if len(token) <= 10:
        return "*" * len(token)
    return token[:5] + "*" * (len(token) - 10) + token[-5:]


_TIME_RE = re.compile(
    r"^\s*(\d{1,2}):(\d{1,2})(?::(\d{1,2}))?\s*(AM|PM)?\s*$", re.IGNORECASE
)


def format_time_to_hhmm(value: str | dt_time) -> str:
    """Normalise a time value to the ``HH:MM`` form the API expects.

    Accepts ``HH:MM``, ``HH:MM:SS`` and their 12-hour ``AM``/``PM`` variants
    as well as ``datetime.time`` objects. Raises ValueError for anything else
    or for out-of-range hours and minutes.
    """

    if isinstance(value, dt_time):
        return value.strftime("%H:%M")
    if not value:
        raise ValueError("Empty time value provided")
    match = _TIME_RE.match(str(value))
    if not match:
        raise ValueError(
            f"Could not parse time: {value!r}. Please use HH:MM format (e.g. '05:00')"
        )
    hours = int(match.group(1))
    minutes = int(match.group(2))
    meridiem = (match.group(4) or "").upper()
    if meridiem:
        if not 1 <= hours <= 12:
            raise ValueError(f"Invalid hour value: {hours}. Hours must be between 1 and 12")
        if meridiem == "PM" and hours < 12:
            hours += 12
        elif meridiem == "AM" and hours == 12:
            hours = 0
    if not 0 <= hours <= 23:
        raise ValueError(f"Invalid hour value: {hours}. Hours must be between 0 and 23")
    if not 0 <= minutes <= 59:
        raise ValueError(
            f"Invalid minute value: {minutes}. Minutes must be between 0 and 59"
        )
    return f"{hours:02d}:{minutes:02d}"


def _validate_soc(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer percentage, got {value!r}")
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be between 0 and 100, got {value}")
    return value


def _extract_token(response: Any) -> tuple[str | None, float | None]:
    """Return the token and payload expiry from a login response."""

    data = response.get("data") if isinstance(response, dict) else None
    auth = data.get("obtainKrakenToken") if isinstance(data, dict) else None
    if not isinstance(auth, dict) or not auth.get("token"):
        return None, None
    claims = auth.get("payload")
    exp = claims.get("exp") if isinstance(claims, dict) else None
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        exp = None
    return str(auth["token"]), exp


def _extract_products(account: dict[str, Any]) -> list[dict[str, Any]]:
    """Collect agreement products from every property's electricity malos."""

    products: list[dict[str, Any]] = []
    for prop in account.get("allProperties") or []:
        if not isinstance(prop, dict):
            continue
        for malo in prop.get("electricityMalos") or []:
            if not isinstance(malo, dict):
                continue
            for agreement in malo.get("agreements") or []:
                if isinstance(agreement, dict) and isinstance(
                    agreement.get("product"), dict
                ):
                    products.append(agreement["product"])
    return products


class GraphQLExecutor:
    """Send GraphQL requests and retry transport failures and rate limits."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        token_provider: Callable[[], str | None] | None = None,
        endpoint: str = GRAPHQL_ENDPOINT,
        timeout: int = DEFAULT_API_TIMEOUT,
        initial_delay: float = BACKOFF_INITIAL_DELAY,
        max_delay: float = BACKOFF_MAX_DELAY,
        log_responses: bool = False,
    ) -> None:
        self._s = session
        self._token_provider = token_provider
        self._endpoint = endpoint
        self._timeout = int(timeout)
        self._initial_delay = float(initial_delay)
        self._max_delay = float(max_delay)
        self.log_responses = log_responses

    def backoff_delay(self, attempt: int) -> float:
        return backoff_delay(
            attempt, initial=self._initial_delay, maximum=self._max_delay
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = token
        return headers

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with async_timeout.timeout(self._timeout):
            async with self._s.request(
                "POST", self._endpoint, json=payload, headers=self._headers()
            ) as resp:
                ctype = resp.headers.get("Content-Type", "")
                if "json" not in ctype:
                    if resp.status >= 500:
                        raise aiohttp.ClientResponseError(
                            resp.request_info,
                            resp.history,
                            status=resp.status,
                            message=resp.reason or "Server error",
                            headers=resp.headers,
                        )
                    text = await resp.text()
                    _LOGGER.error(
                        "Unexpected response content-type %r (HTTP %s): %s",
                        ctype,
                        resp.status,
                        text[:120],
                    )
                    return {}
                try:
                    body = await resp.json()
                except ValueError as err:
                    if resp.status >= 500:
                        raise aiohttp.ClientResponseError(
                            resp.request_info,
                            resp.history,
                            status=resp.status,
                            message=f"Malformed JSON body: {err}",
                            headers=resp.headers,
                        ) from err
                    _LOGGER.error(
                        "Malformed JSON response (HTTP %s): %s", resp.status, err
                    )
                    return {}
                if resp.status >= 400:
                    _LOGGER.debug("GraphQL endpoint answered HTTP %s", resp.status)
                return body if isinstance(body, dict) else {}

    def _log_response(self, response: dict[str, Any]) -> None:
        if self.log_responses:
            _LOGGER.info("API Response: %s", json.dumps(response, indent=2))
        else:
            _LOGGER.debug(
                "API request completed. Enable response logging for the full payload"
            )

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        should_retry: Callable[[dict[str, Any]], bool] | None = None,
    ) -> dict[str, Any]:
        """Run a query, retrying with capped exponential backoff.

        Transport failures and rate-limit errors are retried; ``should_retry``
        lets a caller retry further responses. Once ``max_retries`` attempts
        are used the last response is returned, or OctopusTransportError is
        raised when the last attempt never got a response.
        """

        attempts = max(1, int(max_retries))
        payload = {"query": query, "variables": variables or {}}
        response: dict[str, Any] = {}
        for attempt in range(attempts):
            remaining = attempt < attempts - 1
            try:
                response = await self._post(payload)
            except (aiohttp.ClientError, asyncio.TimeoutError) as err:
                msg = str(err).strip() or err.__class__.__name__
                if not remaining:
                    _LOGGER.error(
                        "GraphQL request failed after %d attempts: %s", attempts, msg
                    )
                    raise OctopusTransportError(msg) from err
                delay = self.backoff_delay(attempt)
                _LOGGER.warning(
                    "Error communicating with API (%s); retrying in %.0f seconds (attempt %d of %d)",
                    msg,
                    delay,
                    attempt + 1,
                    attempts,
                )
                await asyncio.sleep(delay)
                continue

            self._log_response(response)
            if has_error_kind(classify_errors(response), ErrorKind.RATE_LIMITED):
                reason = "Rate limit hit"
            elif should_retry is not None and should_retry(response):
                reason = "Request not successful"
            else:
                return response
            if not remaining:
                _LOGGER.error("%s; giving up after %d attempts", reason, attempts)
                return response
            delay = self.backoff_delay(attempt)
            _LOGGER.warning(
                "%s. Retrying in %.0f seconds... (attempt %d of %d)",
                reason,
                delay,
                attempt + 1,
                attempts,
            )
            await asyncio.sleep(delay)
        return response


class OctopusGermanyClient:
    """Account-scoped client for the Octopus Germany Kraken API."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        email: str,
        password: str,
        *,
        token_manager: TokenManager | None = None,
        cache: TTLCache | None = None,
        executor: GraphQLExecutor | None = None,
        timeout: int = DEFAULT_API_TIMEOUT,
        log_api_responses: bool = False,
        log_token_responses: bool = False,
    ) -> None:
        self._email = email
        self._password = password
        self._tokens = token_manager or TokenManager()
        self._cache = cache or TTLCache(CACHE_TTLS)
        self._executor = executor or GraphQLExecutor(
            session,
            token_provider=lambda: self._tokens.token,
            timeout=timeout,
            log_responses=log_api_responses,
        )
        self._log_token_responses = log_token_responses

    @property
    def token_manager(self) -> TokenManager:
        return self._tokens

    @property
    def cache(self) -> TTLCache:
        return self._cache

    # Authentication

    async def login(self) -> bool:
        """Obtain a new token unless the current one is still valid.

        Every login for this credential set runs under the token manager's
        lock; callers that queued behind a running login re-check validity and
        return without sending another request. Never raises.
        """

        if self._tokens.is_valid:
            _LOGGER.debug("Token still valid, skipping login")
            return True

        async with self._tokens.login_lock:
            if self._tokens.is_valid:
                _LOGGER.debug("Token refreshed by a concurrent login")
                return True
            return await self._login_locked()

    async def _login_locked(self) -> bool:
        variables = {"email": self._email, "password": self._password}
        try:
            response = await self._executor.execute(
                LOGIN_MUTATION,
                variables,
                max_retries=LOGIN_MAX_RETRIES,
                should_retry=lambda resp: _extract_token(resp)[0] is None,
            )
        except OctopusTransportError as err:
            _LOGGER.error("All %d login attempts failed: %s", LOGIN_MAX_RETRIES, err)
            return False

        if self._log_token_responses:
            self._log_token_response(response)

        token, expiry = _extract_token(response)
        if token is None:
            errors = classify_errors(response)
            reason = _describe(errors) if errors else "no token in response"
            _LOGGER.error(
                "All %d login attempts failed: %s", LOGIN_MAX_RETRIES, reason
            )
            return False

        self._tokens.set_token(token, expiry)
        _LOGGER.debug("Login successful")
        return True

    @staticmethod
    def _log_token_response(response: dict[str, Any]) -> None:
        safe = copy.deepcopy(response)
        data = safe.get("data")
        auth = data.get("obtainKrakenToken") if isinstance(data, dict) else None
        if isinstance(auth, dict) and isinstance(auth.get("token"), str):
            auth["token"] = mask_token(auth["token"])
        _LOGGER.info("Token response (partial): %s", json.dumps(safe, indent=2))

    async def ensure_token(self) -> bool:
        if self._tokens.is_valid:
            return True
        _LOGGER.debug("Token invalid or expired, logging in again")
        return await self.login()

    def start_auto_refresh(self) -> None:
        self._tokens.start_auto_refresh(self.login)

    def close(self) -> None:
        """Stop the refresh timer and drop the token.

        In-flight requests finish on their own.
        """

        self._tokens.stop_auto_refresh()
        self._tokens.clear()

    async def _execute_authenticated(
        self,
        query: str,
        variables: dict[str, Any] | None,
        *,
        operation: str,
    ) -> dict[str, Any] | None:
        """Run a query with a valid token, recovering from one token expiry."""

        token_retry = TokenRetry.AVAILABLE
        while True:
            if not await self.ensure_token():
                _LOGGER.error("Failed to ensure valid token for %s", operation)
                return None
            used_token = self._tokens.token
            try:
                response = await self._executor.execute(query, variables)
            except OctopusTransportError as err:
                _LOGGER.error("Error during %s: %s", operation, err)
                return None

            if not has_error_kind(classify_errors(response), ErrorKind.TOKEN_EXPIRED):
                return response
            if token_retry is TokenRetry.SPENT:
                _LOGGER.error(
                    "Token rejected as expired again after re-authentication during %s",
                    operation,
                )
                return None
            _LOGGER.warning("Token expired during %s, refreshing...", operation)
            # A concurrent caller may already have replaced the token
            if self._tokens.token == used_token:
                self._tokens.clear()
            token_retry = TokenRetry.SPENT

    # Reads

    async def fetch_accounts(self, use_cache: bool = True) -> list[dict[str, Any]] | None:
        """Return the accounts visible to the logged-in user."""

        key = f"{CACHE_KEY_ACCOUNT}:viewer"
        if use_cache:
            cached = self._cache.get(key)
            if cached is not MISS:
                return copy.deepcopy(cached)

        response = await self._execute_authenticated(
            ACCOUNT_DISCOVERY_QUERY, None, operation="fetch_accounts"
        )
        if response is None:
            return None
        data = response.get("data")
        viewer = data.get("viewer") if isinstance(data, dict) else None
        if not isinstance(viewer, dict):
            errors = classify_errors(response)
            _LOGGER.error(
                "Unexpected API response structure: %s",
                _describe(errors) if errors else response,
            )
            return None
        accounts = [acc for acc in viewer.get("accounts") or [] if isinstance(acc, dict)]
        if not accounts:
            _LOGGER.error("No accounts found")
            return []
        self._cache.set(key, copy.deepcopy(accounts))
        return accounts

    async def accounts(self) -> list[str] | None:
        accounts = await self.fetch_accounts()
        if accounts is None:
            _LOGGER.error("Failed to fetch accounts")
            return None
        return [str(acc["number"]) for acc in accounts if acc.get("number")]

    async def fetch_all_data(self, account_number: str) -> APIResult | None:
        """Fetch account, devices, dispatches and products in one request.

        Sections present in ``data`` are always returned, even when other
        sections failed. Missing devices or dispatches for the account only
        degrade the result; a response without data is a failure.
        """

        _LOGGER.debug("Making API request to fetch_all_data for account %s", account_number)
        response = await self._execute_authenticated(
            COMPREHENSIVE_QUERY,
            {"accountNumber": account_number},
            operation="fetch_all_data",
        )
        if response is None:
            return None

        errors = classify_errors(response)
        non_critical = [err for err in errors if not err.is_critical]
        critical = [err for err in errors if err.is_critical]
        if non_critical:
            _LOGGER.warning(
                "API returned non-critical errors (expected for accounts without devices/dispatches): %s",
                _describe(non_critical),
            )

        data = response.get("data")
        if not isinstance(data, dict):
            if critical:
                _LOGGER.error(
                    "API returned critical errors with no data: %s", _describe(critical)
                )
            else:
                _LOGGER.error("API response contains neither data nor errors")
            return None
        if critical:
            _LOGGER.error("API returned critical errors: %s", _describe(critical))

        result = APIResult(warnings=non_critical)
        account = data.get("account")
        if isinstance(account, dict):
            result.account = account
            self._cache.set(
                f"{CACHE_KEY_ACCOUNT}:{account_number}", copy.deepcopy(account)
            )
            result.products = _extract_products(account)
            if result.products:
                _LOGGER.debug(
                    "Extracted %d products from account data", len(result.products)
                )
        result.devices = list(data.get("devices") or [])
        result.planned_dispatches = list(data.get("plannedDispatches") or [])
        result.completed_dispatches = list(data.get("completedDispatches") or [])
        return result

    def _narrow_sections(
        self,
        response: dict[str, Any],
        sections: tuple[str, ...],
        operation: str,
    ) -> dict[str, list[dict[str, Any]]] | None:
        errors = classify_errors(response)
        critical = [err for err in errors if err.is_critical]
        if critical:
            _LOGGER.error(
                "API returned errors during %s: %s", operation, _describe(critical)
            )
            return None
        if errors:
            _LOGGER.warning(
                "API returned non-critical errors during %s: %s",
                operation,
                _describe(errors),
            )
        data = response.get("data")
        if not isinstance(data, dict):
            if not errors:
                _LOGGER.error("API response for %s contains no data", operation)
                return None
            # every error was a missing section
            data = {}
        return {name: list(data.get(name) or []) for name in sections}

    async def fetch_devices(
        self, account_number: str, use_cache: bool = True
    ) -> list[dict[str, Any]] | None:
        key = f"{CACHE_KEY_DEVICES}:{account_number}"
        if use_cache:
            cached = self._cache.get(key)
            if cached is not MISS:
                return copy.deepcopy(cached)

        response = await self._execute_authenticated(
            DEVICES_QUERY, {"accountNumber": account_number}, operation="fetch_devices"
        )
        if response is None:
            return None
        sections = self._narrow_sections(response, ("devices",), "fetch_devices")
        if sections is None:
            return None
        devices = sections["devices"]
        self._cache.set(key, copy.deepcopy(devices))
        return devices

    async def fetch_dispatches(
        self, account_number: str, use_cache: bool = True
    ) -> dict[str, list[dict[str, Any]]] | None:
        key = f"{CACHE_KEY_DISPATCHES}:{account_number}"
        if use_cache:
            cached = self._cache.get(key)
            if cached is not MISS:
                return copy.deepcopy(cached)

        response = await self._execute_authenticated(
            DISPATCHES_QUERY,
            {"accountNumber": account_number},
            operation="fetch_dispatches",
        )
        if response is None:
            return None
        dispatches = self._narrow_sections(
            response, ("plannedDispatches", "completedDispatches"), "fetch_dispatches"
        )
        if dispatches is None:
            return None
        self._cache.set(key, copy.deepcopy(dispatches))
        return dispatches

    def invalidate_cache(self, key: str | None = None) -> None:
        self._cache.invalidate(key)

    # Mutations

    async def change_device_suspension(self, device_id: str, action: str) -> str | None:
        """Suspend or resume smart control of a device; return its id on success."""

        if action not in DEVICE_ACTIONS:
            raise ValueError(f"Unsupported device action {action!r}")
        _LOGGER.debug(
            "Executing change_device_suspension: device_id=%s, action=%s",
            device_id,
            action,
        )
        response = await self._execute_authenticated(
            CHANGE_DEVICE_SUSPENSION_MUTATION,
            {"deviceId": device_id, "action": action},
            operation="change_device_suspension",
        )
        if response is None:
            return None
        errors = classify_errors(response)
        if errors:
            _LOGGER.error("API returned errors: %s", _describe(errors))
            return None
        data = response.get("data")
        control = data.get("updateDeviceSmartControl") if isinstance(data, dict) else None
        changed_id = control.get("id") if isinstance(control, dict) else None
        if not changed_id:
            _LOGGER.error("Unexpected device suspension response: %s", response)
            return None
        self._cache.invalidate(CACHE_KEY_DEVICES)
        return str(changed_id)

    async def set_vehicle_charge_preferences(
        self,
        account_number: str,
        weekday_target_soc: int,
        weekend_target_soc: int,
        weekday_target_time: str | dt_time,
        weekend_target_time: str | dt_time,
    ) -> bool:
        try:
            weekday_soc = _validate_soc("weekday_target_soc", weekday_target_soc)
            weekend_soc = _validate_soc("weekend_target_soc", weekend_target_soc)
            weekday_time = format_time_to_hhmm(weekday_target_time)
            weekend_time = format_time_to_hhmm(weekend_target_time)
        except ValueError as err:
            _LOGGER.error("Invalid vehicle charge preferences: %s", err)
            return False

        _LOGGER.debug(
            "Formatted times for API: weekday=%s, weekend=%s", weekday_time, weekend_time
        )
        query = SET_VEHICLE_CHARGE_PREFERENCES_TEMPLATE.format(
            weekday_soc=weekday_soc,
            weekend_soc=weekend_soc,
            weekday_time=weekday_time,
            weekend_time=weekend_time,
        )
        response = await self._execute_authenticated(
            query,
            {"accountNumber": account_number},
            operation="set_vehicle_charge_preferences",
        )
        if response is None:
            return False
        errors = classify_errors(response)
        if errors:
            _LOGGER.error(
                "API error setting vehicle charge preferences: %s", _describe(errors)
            )
            return False
        self._cache.invalidate(CACHE_KEY_DEVICES)
        return True

    def diagnostics(self) -> dict[str, Any]:
        return {
            "token_valid": self._tokens.is_valid,
            "token_seconds_remaining": self._tokens.seconds_remaining,
            "auto_refresh_active": self._tokens.auto_refresh_active,
            "cache_namespaces": sorted(
                {self._cache.namespace(key) for key in self._cache.keys()}
            ),
        }
