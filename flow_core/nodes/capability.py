"""
Capability node - call an external capability service by name.
"""
from __future__ import annotations

import json
import logging
from functools import partial
from typing import Any, Dict, Optional

from ..capabilities.registry import CapabilityRegistry
from ..capabilities.transport import CapabilityTransport
from ..errors import (
    CapabilityCallError,
    CapabilityUnavailableError,
    NodeExecutionError,
    UnknownNodeTypeError,
)
from .registry import NodeHandler

logger = logging.getLogger(__name__)


def _error_message(body: Any) -> str:
    if isinstance(body, dict):
        for key in ("error", "message"):
            if body.get(key):
                return str(body[key])
        return json.dumps(body, default=str)
    return "" if body is None else str(body)


class CapabilityNode:
    """
    Dispatches capability-typed nodes through a transport.

    Config:
        - endpoint: Route to call (default: the capability's first route)
        - method: HTTP-style method (default POST)
        - params: Base parameters; wired inputs override them key by key
    """

    def __init__(
        self,
        capabilities: CapabilityRegistry,
        transport: Optional[CapabilityTransport] = None,
    ):
        self.capabilities = capabilities
        self.transport = transport

    def handler_for(self, name: str) -> NodeHandler:
        """Bind a handler to one capability name."""
        return partial(self.call, name)

    async def call(self, name: str, inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        spec = self.capabilities.get(name)
        if spec is None:
            raise UnknownNodeTypeError(name)
        if not spec.available:
            raise CapabilityUnavailableError(name)
        if self.transport is None:
            raise NodeExecutionError(f"No transport configured for capability '{name}'")

        route = config.get("endpoint") or spec.default_route
        method = (config.get("method") or "POST").upper()
        params = {**(config.get("params") or {}), **inputs}

        logger.info(f"Calling capability {name}: {method} {spec.namespace}{route}")
        response = await self.transport.call(spec.namespace, route, method, params)

        if response.status >= 400:
            raise CapabilityCallError(name, response.status, _error_message(response.body))

        return {"output": response.body}
