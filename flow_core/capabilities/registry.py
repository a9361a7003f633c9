"""
Capability Registry.

Maps capability names (``language``, ``image``, ...) to the namespace they are
served under, the endpoints they declare and whether the backing service is
available. The registry is built once by the embedding environment and only
read by the executor.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class CapabilityEndpoint(BaseModel):
    """One route declared by a capability."""
    method: str = "POST"
    route: str
    description: str = ""

    model_config = ConfigDict(frozen=True)


class CapabilitySpec(BaseModel):
    """
    Declaration of an external capability service.

    Attributes:
        name: Human-readable name
        description: What the capability does
        namespace: Routing prefix the service is reachable under
        endpoints: Declared routes; the first one is the default
        available: Whether the service is installed and reachable
        icon: Optional icon hint for builders
        color: Optional color hint for builders
    """
    name: str
    description: str = ""
    namespace: str
    endpoints: List[CapabilityEndpoint] = Field(default_factory=list)
    available: bool = False
    icon: Optional[str] = None
    color: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def default_route(self) -> str:
        """Route of the first declared endpoint ("" when none are declared)."""
        return self.endpoints[0].route if self.endpoints else ""


class CapabilityRegistry:
    """
    Read-mostly registry of capabilities keyed by node type tag.

    Example:
        registry = CapabilityRegistry({
            "language": {
                "name": "Language Engine",
                "namespace": "aevov-language/v1",
                "endpoints": [{"method": "POST", "route": "/generate"}],
                "available": True,
            },
        })
    """

    def __init__(self, capabilities: Optional[Mapping[str, Any]] = None):
        self._capabilities: Dict[str, CapabilitySpec] = {}
        for key, spec in (capabilities or {}).items():
            self.register(key, spec)

    def register(self, key: str, spec: CapabilitySpec | Mapping[str, Any]) -> CapabilitySpec:
        """
        Register (or replace) a capability.

        Args:
            key: Node type tag the capability answers to
            spec: CapabilitySpec or a plain dict in the same shape
        """
        if not isinstance(spec, CapabilitySpec):
            spec = CapabilitySpec.model_validate(spec)
        if key in self._capabilities:
            logger.debug(f"Replacing capability: {key}")
        self._capabilities[key] = spec
        return spec

    def get(self, key: str) -> Optional[CapabilitySpec]:
        return self._capabilities.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._capabilities

    def __len__(self) -> int:
        return len(self._capabilities)

    def __iter__(self):
        return iter(self._capabilities)

    def items(self) -> Iterable[tuple[str, CapabilitySpec]]:
        return self._capabilities.items()

    def list(self, include_unavailable: bool = False) -> Dict[str, CapabilitySpec]:
        """Capabilities keyed by tag; unavailable ones are hidden by default."""
        return {
            key: spec for key, spec in self._capabilities.items()
            if include_unavailable or spec.available
        }

    def health(self) -> Dict[str, Any]:
        """Summary suitable for a health endpoint."""
        available = sum(1 for spec in self._capabilities.values() if spec.available)
        return {
            "status": "healthy",
            "capabilities_available": available,
            "capabilities_total": len(self._capabilities),
        }

    def to_dict(self, include_unavailable: bool = True) -> Dict[str, Dict[str, Any]]:
        return {
            key: spec.model_dump(exclude_none=True)
            for key, spec in self.list(include_unavailable).items()
        }
