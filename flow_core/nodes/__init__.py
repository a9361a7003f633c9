"""
Node handlers for workflow execution.

Built-in types: input, output, transform, condition, loop, merge, split,
delay, http and code. Any other type is looked up in the capability registry.
"""
from __future__ import annotations

from typing import Optional

from ..capabilities.registry import CapabilityRegistry
from ..capabilities.transport import CapabilityTransport
from .builtin import builtin_handlers
from .capability import CapabilityNode
from .catalog import BUILTIN_NODE_TYPES, get_node_type_definitions
from .http import HTTPNode
from .registry import HandlerRegistry, NodeHandler


def create_handler_registry(
    capabilities: Optional[CapabilityRegistry] = None,
    transport: Optional[CapabilityTransport] = None,
    http_timeout: Optional[float] = None,
) -> HandlerRegistry:
    """
    Build a registry with every built-in handler plus capability dispatch.

    Args:
        capabilities: Registry consulted for non built-in node types
        transport: Transport used for capability calls
        http_timeout: Per-request timeout for ``http`` nodes (seconds)
    """
    capabilities = capabilities if capabilities is not None else CapabilityRegistry()
    capability_node = CapabilityNode(capabilities, transport)

    registry = HandlerRegistry(
        capabilities=capabilities,
        capability_handler=capability_node.handler_for,
    )
    registry.update(builtin_handlers)
    registry.register("http", HTTPNode(timeout=http_timeout))
    return registry


__all__ = [
    "BUILTIN_NODE_TYPES",
    "CapabilityNode",
    "HTTPNode",
    "HandlerRegistry",
    "NodeHandler",
    "builtin_handlers",
    "create_handler_registry",
    "get_node_type_definitions",
]
