from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from .const import TOKEN_AUTO_REFRESH_INTERVAL, TOKEN_REFRESH_MARGIN

_LOGGER = logging.getLogger(__name__)


def _decode_jwt_exp(token: str) -> int | None:
    """Decode the exp claim from a JWT-like token without validation."""

    try:
        parts = token.split(".")
        if len(parts) < 2:
            return None
        payload_b64 = parts[1]
        padded = payload_b64 + "=" * (-len(payload_b64) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded))
    except Exception:  # noqa: BLE001
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if isinstance(exp, (int, float)) and not isinstance(exp, bool):
        return int(exp)
    return None


@dataclass
class Token:
    """Bearer credential and the epoch second it expires at."""

    value: str
    expires_at: float | None = None


class TokenManager:
    """Own the Kraken token for one credential set.

    The manager decides validity, runs the periodic forced refresh, and holds
    the lock every login for this credential set goes through.
    """

    def __init__(
        self,
        *,
        refresh_margin: int = TOKEN_REFRESH_MARGIN,
        auto_refresh_interval: int = TOKEN_AUTO_REFRESH_INTERVAL,
    ) -> None:
        self._token: Token | None = None
        self._refresh_margin = int(refresh_margin)
        self._auto_refresh_interval = int(auto_refresh_interval)
        self._refresh_task: asyncio.Task | None = None
        self.login_lock = asyncio.Lock()

    @property
    def token(self) -> str | None:
        return self._token.value if self._token else None

    @property
    def expires_at(self) -> float | None:
        return self._token.expires_at if self._token else None

    @property
    def is_valid(self) -> bool:
        """Return True while the token has more than the margin left."""

        if self._token is None or not self._token.value or not self._token.expires_at:
            return False
        now = time.time()
        valid = now < self._token.expires_at - self._refresh_margin
        if not valid:
            _LOGGER.debug(
                "Token validity check: INVALID (expiry in %d seconds)",
                int(self._token.expires_at - now),
            )
        return valid

    @property
    def seconds_remaining(self) -> int | None:
        if self._token is None or not self._token.expires_at:
            return None
        return int(self._token.expires_at - time.time())

    @property
    def auto_refresh_active(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    def set_token(self, value: str, expiry: float | None = None) -> None:
        """Store a new token, resolving its expiry."""

        now = time.time()
        if expiry:
            expires_at = float(expiry)
            _LOGGER.debug(
                "Token set with explicit expiry - valid for %d seconds",
                int(expires_at - now),
            )
        else:
            exp = _decode_jwt_exp(value)
            if exp is not None:
                expires_at = float(exp)
                _LOGGER.debug(
                    "Token set with decoded expiry - valid for %d seconds",
                    int(expires_at - now),
                )
            else:
                expires_at = now + self._auto_refresh_interval
                _LOGGER.warning(
                    "Failed to decode token expiry; using fallback expiry of %d minutes",
                    self._auto_refresh_interval // 60,
                )
        self._token = Token(value=value, expires_at=expires_at)

    def expire(self) -> None:
        """Force the current token to be treated as expired."""

        if self._token is not None:
            self._token.expires_at = 0

    def clear(self) -> None:
        self._token = None

    def start_auto_refresh(self, callback: Callable[[], Awaitable[Any]]) -> None:
        """Run callback on a fixed interval, forcing a real login each time."""

        self.stop_auto_refresh()
        self._refresh_task = asyncio.get_running_loop().create_task(
            self._auto_refresh_loop(callback)
        )
        _LOGGER.debug(
            "Started automatic token refresh task (every %d seconds)",
            self._auto_refresh_interval,
        )

    def stop_auto_refresh(self) -> None:
        if self._refresh_task is None:
            return
        self._refresh_task.cancel()
        self._refresh_task = None
        _LOGGER.debug("Stopped automatic token refresh task")

    async def _auto_refresh_loop(
        self, callback: Callable[[], Awaitable[Any]]
    ) -> None:
        while True:
            await asyncio.sleep(self._auto_refresh_interval)
            _LOGGER.info("Performing scheduled token refresh")
            self.expire()
            try:
                await callback()
            except asyncio.CancelledError:
                raise
            except Exception as err:  # noqa: BLE001 - keep the timer alive
                _LOGGER.error("Error in scheduled token refresh: %s", err)
            else:
                _LOGGER.debug("Scheduled token refresh completed")
