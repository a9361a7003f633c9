"""
HTTP node - outbound HTTP requests from a workflow.

Only transport failures raise. Any response, including 4xx/5xx, is returned
to the graph as ``{output, status, headers}`` so downstream nodes can branch
on the status.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..errors import NodeExecutionError, TransportError
from ..expressions import render_template

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")
DEFAULT_TIMEOUT = 30


def _parse_headers(headers: Any) -> Dict[str, str]:
    if not headers:
        return {}
    if isinstance(headers, str):
        try:
            headers = json.loads(headers)
        except ValueError as e:
            raise NodeExecutionError(f"Invalid HTTP headers JSON: {e}") from e
    if not isinstance(headers, dict):
        raise NodeExecutionError("HTTP headers must be an object")
    return {str(k): str(v) for k, v in headers.items()}


def _has_header(headers: Dict[str, str], name: str) -> bool:
    return any(key.lower() == name.lower() for key in headers)


class HTTPNode:
    """
    Handler for ``http`` nodes.

    Config:
        - url: Target URL; ``{{key}}`` placeholders are filled from inputs
        - method: HTTP method (default GET)
        - headers: Header map, or a JSON string of one
        - body: Request body used when no ``body`` input is wired

    Output:
        - output: Parsed JSON body, or the raw text when it is not JSON
        - status: HTTP status code
        - headers: Response headers
    """

    def __init__(self, timeout: Optional[float] = None):
        self.timeout = DEFAULT_TIMEOUT if timeout is None else timeout

    def build_request(self, inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        """Assemble method, url, headers and body without sending anything."""
        url = render_template(config.get("url") or "", inputs, url_encode=True)
        if not url:
            raise NodeExecutionError("HTTP URL is required")

        method = (config.get("method") or "GET").upper()
        headers = _parse_headers(config.get("headers"))

        body = inputs.get("body")
        if body is None:
            body = config.get("body")

        data: Optional[str] = None
        if body and method in BODY_METHODS:
            data = body if isinstance(body, str) else json.dumps(body)
            if not _has_header(headers, "Content-Type"):
                headers["Content-Type"] = "application/json"

        return {"method": method, "url": url, "headers": headers, "data": data}

    async def __call__(self, inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        request = self.build_request(inputs, config)
        method, url = request["method"], request["url"]

        logger.debug(f"HTTP node request: {method} {url}")
        try:
            async with aiohttp.ClientSession() as session:
                async with session.request(
                    method,
                    url,
                    headers=request["headers"],
                    data=request["data"],
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    text = await response.text()
                    status = response.status
                    response_headers = dict(response.headers)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"HTTP request failed: {e or type(e).__name__}", url=url) from e

        try:
            parsed = json.loads(text) if text else None
        except ValueError:
            parsed = None

        return {
            "output": text if parsed is None else parsed,
            "status": status,
            "headers": response_headers,
        }
