"""
UniFi gateway static route client.

Talks to the UniFi Network application's REST API through the gateway's
``/proxy/network`` prefix. Credentials are held in an explicit
``RouterSession`` owned by the gateway; nothing is stored globally.

Endpoints used:
- ``POST /api/auth/login``
- ``GET /proxy/network/api/s/{site}/rest/routing``
- ``POST /proxy/network/api/s/{site}/rest/routing/static-route``
- ``DELETE /proxy/network/api/s/{site}/rest/routing/{id}``
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

import aiohttp
from loguru import logger

from threadroute.core.config import RouteUpdaterSettings
from threadroute.datastructures.route_types import RouterRoute
from threadroute.datastructures.type_aliases import (
    DurationSeconds,
    JsonDict,
    RouteId,
    Timestamp,
)

from .errors import RouterGatewayError, classify_api_error

USER_AGENT = "thread-route-updater/1.0"
SESSION_COOKIE_NAMES = ("TOKEN", "unifises")
DEFAULT_REQUEST_TIMEOUT = 30.0


def route_to_payload(route: RouterRoute, *, gateway_device: str = "") -> JsonDict:
    payload: JsonDict = {
        "enabled": route.enabled,
        "name": route.label,
        "type": "static-route",
        "static-route_nexthop": route.next_hop,
        "static-route_network": route.prefix,
        "static-route_type": "nexthop-route",
        "gateway_type": "default",
    }
    if gateway_device:
        payload["gateway_device"] = gateway_device
    if route.id:
        payload["_id"] = route.id
    return payload


def route_from_payload(payload: JsonDict) -> RouterRoute:
    return RouterRoute(
        id=str(payload.get("_id", "")),
        prefix=str(payload.get("static-route_network", "")),
        next_hop=str(payload.get("static-route_nexthop", "")),
        label=str(payload.get("name", "")),
        enabled=bool(payload.get("enabled", False)),
    )


def _decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def _response_code(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    meta = payload.get("meta")
    if not isinstance(meta, dict):
        return None
    rc = meta.get("rc")
    return str(rc) if rc is not None else None


@dataclass(slots=True)
class RouterSession:
    """Credentials for the router management API."""

    csrf_token: str = ""
    session_cookie: str = ""
    device_token: str = ""
    logged_in_at: Timestamp = 0.0

    def is_valid(self) -> bool:
        return bool(self.session_cookie and self.csrf_token)

    def age(self, now: Timestamp | None = None) -> DurationSeconds:
        timestamp = now if now is not None else time.time()
        return timestamp - self.logged_in_at

    def is_stale(self, max_age: DurationSeconds, now: Timestamp | None = None) -> bool:
        return self.age(now) > max_age

    def invalidate(self) -> None:
        self.csrf_token = ""
        self.session_cookie = ""
        self.device_token = ""
        self.logged_in_at = 0.0

    def headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.session_cookie:
            headers["Authorization"] = f"Bearer {self.session_cookie}"
        if self.csrf_token:
            headers["X-CSRF-Token"] = self.csrf_token
        return headers

    def cookies(self) -> dict[str, str]:
        if not self.session_cookie:
            return {}
        return {"TOKEN": self.session_cookie}


@dataclass(eq=False, slots=True)
class UnifiGateway:
    """Static route CRUD against a UniFi gateway."""

    base_url: str
    username: str
    password: str
    site: str = "default"
    gateway_device: str = ""
    insecure_ssl: bool = False
    session_max_age: DurationSeconds = 300.0
    request_timeout: DurationSeconds = DEFAULT_REQUEST_TIMEOUT
    session: RouterSession = field(default_factory=RouterSession)
    _http: aiohttp.ClientSession | None = None

    @classmethod
    def from_settings(cls, settings: RouteUpdaterSettings) -> UnifiGateway:
        return cls(
            base_url=settings.api_base_url,
            username=settings.username,
            password=settings.password,
            site=settings.site,
            gateway_device=settings.gateway_device,
            insecure_ssl=settings.insecure_ssl,
            session_max_age=settings.session_max_age,
        )

    async def __aenter__(self) -> UnifiGateway:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        if self._http is not None and not self._http.closed:
            await self._http.close()
        self._http = None

    def _client(self) -> aiohttp.ClientSession:
        if self._http is None or self._http.closed:
            connector = aiohttp.TCPConnector(ssl=not self.insecure_ssl)
            self._http = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self.request_timeout),
                cookie_jar=aiohttp.DummyCookieJar(),
                headers={"User-Agent": USER_AGENT},
            )
        return self._http

    def _routing_url(self, suffix: str = "") -> str:
        base = f"{self.base_url.rstrip('/')}/proxy/network/api/s/{self.site}/rest/routing"
        return f"{base}/{suffix}" if suffix else base

    async def _request(
        self,
        method: str,
        url: str,
        *,
        action: str,
        payload: JsonDict | None = None,
        authenticated: bool = True,
    ) -> tuple[str, aiohttp.ClientResponse]:
        headers = {"Accept": "application/json"}
        cookies: dict[str, str] = {}
        if authenticated:
            headers.update(self.session.headers())
            cookies = self.session.cookies()
        try:
            async with self._client().request(
                method, url, json=payload, headers=headers, cookies=cookies
            ) as response:
                body = await response.text()
        except (aiohttp.ClientError, TimeoutError) as e:
            raise RouterGatewayError(f"{action} failed: {e}") from e

        if response.status != 200:
            raise classify_api_error(response.status, body, action=action)
        return body, response

    # Session management

    async def login(self) -> None:
        """Authenticate and store fresh credentials on ``self.session``."""
        url = f"{self.base_url.rstrip('/')}/api/auth/login"
        body, response = await self._request(
            "POST",
            url,
            action="login",
            payload={"username": self.username, "password": self.password},
            authenticated=False,
        )

        payload = _decode_json(body)
        if payload is None:
            raise RouterGatewayError(f"failed to parse login response: {body}")

        self.session.invalidate()
        if _response_code(payload) == "ok":
            data = payload.get("data") or []
            if data and isinstance(data[0], dict):
                self.session.device_token = str(data[0].get("x-csrf-token", ""))
        elif isinstance(payload, dict) and payload.get("username") == self.username:
            self.session.device_token = str(payload.get("deviceToken", ""))
        else:
            raise RouterGatewayError(f"login failed: invalid user profile, body: {body}")

        csrf = response.headers.get("X-CSRF-Token") or response.headers.get(
            "X-Updated-CSRF-Token"
        )
        if csrf:
            self.session.csrf_token = csrf
        for name in SESSION_COOKIE_NAMES:
            morsel = response.cookies.get(name)
            if morsel is not None and morsel.value:
                self.session.session_cookie = morsel.value
        self.session.logged_in_at = time.time()
        logger.info("Logged in to router at {}", self.base_url)

    async def ensure_session(self, now: Timestamp | None = None) -> None:
        """Log in when credentials are missing or older than the max age."""
        if not self.session.is_valid():
            logger.info("No valid session tokens, authenticating...")
            await self.login()
        elif self.session.is_stale(self.session_max_age, now):
            logger.info(
                "Session tokens expired ({:.0f} seconds old), re-authenticating...",
                self.session.age(now),
            )
            await self.login()
        else:
            logger.debug(
                "Using existing session tokens ({:.0f} seconds old)",
                self.session.age(now),
            )

    def invalidate_session(self) -> None:
        self.session.invalidate()

    # Route CRUD

    async def list_routes(self) -> list[RouterRoute]:
        body, _ = await self._request("GET", self._routing_url(), action="list routes")
        payload = _decode_json(body)
        rc = _response_code(payload)
        if rc != "ok":
            raise classify_api_error(200, body, action=f"list routes (rc={rc})")
        return [
            route_from_payload(item)
            for item in payload.get("data") or []
            if isinstance(item, dict)
        ]

    async def add_route(self, route: RouterRoute) -> None:
        body, _ = await self._request(
            "POST",
            self._routing_url("static-route"),
            action=f"add route {route.prefix}",
            payload=route_to_payload(route, gateway_device=self.gateway_device),
        )
        self._check_response_code(body, action=f"add route {route.prefix}")

    async def delete_route(self, route_id: RouteId) -> None:
        body, _ = await self._request(
            "DELETE",
            self._routing_url(route_id),
            action=f"delete route {route_id}",
        )
        self._check_response_code(body, action=f"delete route {route_id}")

    @staticmethod
    def _check_response_code(body: str, *, action: str) -> None:
        rc = _response_code(_decode_json(body))
        if rc is not None and rc != "ok":
            raise classify_api_error(200, body, action=f"{action} (rc={rc})")
