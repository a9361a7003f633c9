"""
Node handler registry.

Maps a node type tag to the handler that runs it. Handlers are callables
``(inputs, config) -> dict``; they may be plain functions or coroutines.
Tags not registered here fall through to the capability handler when the
capability registry knows the name.
"""
from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from ..capabilities.registry import CapabilityRegistry
from ..errors import UnknownNodeTypeError

logger = logging.getLogger(__name__)

NodeHandler = Callable[[Dict[str, Any], Dict[str, Any]], Union[Dict[str, Any], Awaitable[Dict[str, Any]]]]
CapabilityHandlerFactory = Callable[[str], NodeHandler]


class HandlerRegistry:
    """
    Registry of node handlers keyed by node type.

    Example:
        handlers = HandlerRegistry()

        @handlers.register("upper")
        def upper(inputs, config):
            return {"output": str(inputs.get("input", "")).upper()}
    """

    def __init__(
        self,
        capabilities: Optional[CapabilityRegistry] = None,
        capability_handler: Optional[CapabilityHandlerFactory] = None,
    ):
        self._handlers: Dict[str, NodeHandler] = {}
        self.capabilities = capabilities
        self._capability_handler = capability_handler

    def register(self, node_type: str, handler: Optional[NodeHandler] = None):
        """
        Register a handler for *node_type*.

        Usable directly (``register("x", func)``) or as a decorator.

        Raises:
            ValueError: If a handler is already registered for the type
        """
        def decorator(func: NodeHandler) -> NodeHandler:
            if node_type in self._handlers:
                raise ValueError(f"Handler for node type '{node_type}' is already registered")
            self._handlers[node_type] = func
            return func

        if handler is not None:
            return decorator(handler)
        return decorator

    def update(self, other: "HandlerRegistry") -> None:
        """Copy every handler from *other* into this registry."""
        for node_type, handler in other._handlers.items():
            self.register(node_type, handler)

    def types(self) -> List[str]:
        """Built-in (non-capability) node types, in registration order."""
        return list(self._handlers)

    def __contains__(self, node_type: object) -> bool:
        return node_type in self._handlers

    def resolve(self, node_type: str) -> NodeHandler:
        """
        Find the handler for *node_type*.

        Raises:
            UnknownNodeTypeError: Neither a handler nor a capability matches
        """
        handler = self._handlers.get(node_type)
        if handler is not None:
            return handler

        if (
            self.capabilities is not None
            and self._capability_handler is not None
            and node_type in self.capabilities
        ):
            return self._capability_handler(node_type)

        raise UnknownNodeTypeError(node_type)

    async def dispatch(
        self,
        node_type: str,
        inputs: Dict[str, Any],
        config: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Resolve and run the handler, awaiting it if it is a coroutine."""
        handler = self.resolve(node_type)
        result = handler(inputs, config)
        if inspect.isawaitable(result):
            result = await result
        return result
