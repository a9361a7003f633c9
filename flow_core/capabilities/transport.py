"""
Capability transports.

A transport performs one call against a capability service identified by
(namespace, route, method, params) and returns (status, body). The executor
never inspects how the call is made.
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Tuple, Union, runtime_checkable

import aiohttp

from ..errors import TransportError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapabilityResponse:
    """Status code and decoded body of a capability call."""
    status: int
    body: Any = None

    @property
    def ok(self) -> bool:
        return self.status < 400


@runtime_checkable
class CapabilityTransport(Protocol):
    """Protocol for anything that can reach capability services."""

    async def call(
        self,
        namespace: str,
        route: str,
        method: str,
        params: Dict[str, Any],
    ) -> CapabilityResponse:
        ...


def join_route(namespace: str, route: str) -> str:
    """``aevov-language/v1`` + ``/generate`` -> ``/aevov-language/v1/generate``."""
    route = route if route.startswith("/") or not route else f"/{route}"
    namespace = namespace.strip("/")
    return f"/{namespace}{route}" if namespace else route or "/"


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return "" if value is None else str(value)


class HTTPCapabilityTransport:
    """
    Reach capability services over HTTP.

    Calls go to ``<base_url>/<namespace><route>``. GET requests carry params
    as query string; all other methods send them as a JSON body.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = dict(headers or {})

    def url_for(self, namespace: str, route: str) -> str:
        return self.base_url + join_route(namespace, route)

    async def call(
        self,
        namespace: str,
        route: str,
        method: str,
        params: Dict[str, Any],
    ) -> CapabilityResponse:
        method = method.upper()
        url = self.url_for(namespace, route)

        kwargs: Dict[str, Any] = {
            "headers": self.headers,
            "timeout": aiohttp.ClientTimeout(total=self.timeout),
        }
        if method == "GET":
            kwargs["params"] = {k: _query_value(v) for k, v in params.items()}
        else:
            kwargs["json"] = params

        logger.debug(f"Capability call: {method} {url}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(method, url, **kwargs) as response:
                    text = await response.text()
                    try:
                        body = json.loads(text) if text else None
                    except ValueError:
                        body = text
                    return CapabilityResponse(status=response.status, body=body)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"Capability request failed: {e or type(e).__name__}", url=url) from e


RouteHandler = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


class LocalCapabilityTransport:
    """
    In-process transport backed by registered Python callables.

    Handlers receive the merged params and may return a CapabilityResponse,
    a ``(status, body)`` tuple, or a bare body (status 200). Useful for
    embedding services in the same process and for tests.
    """

    def __init__(self):
        self._routes: Dict[Tuple[str, str], RouteHandler] = {}
        self.calls: list[Tuple[str, str, str, Dict[str, Any]]] = []

    def add_route(
        self,
        namespace: str,
        route: str,
        handler: RouteHandler,
        method: str = "POST",
    ) -> None:
        self._routes[(join_route(namespace, route), method.upper())] = handler

    def route(self, namespace: str, route: str, method: str = "POST") -> Callable[[RouteHandler], RouteHandler]:
        """Decorator form of add_route."""
        def decorator(func: RouteHandler) -> RouteHandler:
            self.add_route(namespace, route, func, method)
            return func
        return decorator

    async def call(
        self,
        namespace: str,
        route: str,
        method: str,
        params: Dict[str, Any],
    ) -> CapabilityResponse:
        method = method.upper()
        self.calls.append((namespace, route, method, dict(params)))

        handler = self._routes.get((join_route(namespace, route), method))
        if handler is None:
            return CapabilityResponse(
                status=404,
                body={"code": "rest_no_route", "error": "No route was found matching the URL and request method"},
            )

        result = handler(params)
        if inspect.isawaitable(result):
            result = await result

        if isinstance(result, CapabilityResponse):
            return result
        if isinstance(result, tuple) and len(result) == 2 and isinstance(result[0], int):
            return CapabilityResponse(status=result[0], body=result[1])
        return CapabilityResponse(status=200, body=result)
