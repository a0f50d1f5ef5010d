"""Fake aiohttp objects and payload builders shared by the API tests."""

from __future__ import annotations

import asyncio
import base64
import json
from types import SimpleNamespace
from typing import Any, Callable

ACCOUNT_NUMBER = "A-1234ABCD"


def build_jwt(exp: int) -> str:
    payload = {"exp": exp}
    payload_b64 = base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()
    return f"hdr.{payload_b64.rstrip('=')}.sig"


def login_ok(token: str = "tok-abcdefghijkl", exp: int | None = None) -> dict:
    auth: dict[str, Any] = {"token": token}
    if exp is not None:
        auth["payload"] = {"exp": exp}
    return {"data": {"obtainKrakenToken": auth}}


def gql_error(code: str, path: list[str] | None = None, message: str = "boom") -> dict:
    err: dict[str, Any] = {"message": message, "extensions": {"errorCode": code}}
    if path is not None:
        err["path"] = path
    return err


class FakeResponse:
    """Minimal async response object to exercise request helpers."""

    def __init__(
        self,
        *,
        status: int = 200,
        headers: dict[str, str] | None = None,
        json_body: object = None,
        text_body: str = "",
        gate: asyncio.Event | None = None,
        json_error: Exception | None = None,
    ) -> None:
        self.status = status
        self._json_body = json_body
        self._text_body = text_body
        self._gate = gate
        self._json_error = json_error
        self.headers = headers or {"Content-Type": "application/json"}
        self.reason = "reason"
        self.request_info = SimpleNamespace(real_url="https://example.test/graphql/")
        self.history = ()

    async def __aenter__(self) -> "FakeResponse":
        if self._gate is not None:
            await self._gate.wait()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False

    async def json(self):
        if self._json_error is not None:
            raise self._json_error
        return self._json_body

    async def text(self) -> str:
        return self._text_body


class FakeSession:
    """Stub aiohttp.ClientSession recording every POSTed GraphQL payload.

    Responses come either from a scripted list (consumed in order) or from a
    handler receiving the payload. Dicts are wrapped as JSON responses and
    exceptions are raised from ``request``.
    """

    def __init__(
        self,
        responses: list[Any] | None = None,
        *,
        handler: Callable[[dict[str, Any]], Any] | None = None,
    ) -> None:
        self._responses = list(responses or [])
        self._handler = handler
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [kwargs["json"] for _method, _url, kwargs in self.calls]

    def queries_containing(self, needle: str) -> int:
        return sum(1 for payload in self.payloads if needle in payload["query"])

    def request(self, method: str, url: str, **kwargs):
        self.calls.append((method, url, kwargs))
        if self._handler is not None:
            resp = self._handler(kwargs["json"])
        else:
            if not self._responses:
                raise AssertionError("No response configured for request")
            resp = self._responses.pop(0)
        if isinstance(resp, BaseException):
            raise resp
        if isinstance(resp, dict):
            resp = FakeResponse(json_body=resp)
        return resp
