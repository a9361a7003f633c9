"""
Capability services: registry, default catalog and transports.
"""
from .registry import CapabilityEndpoint, CapabilityRegistry, CapabilitySpec
from .catalog import DEFAULT_CAPABILITIES, build_capability_registry
from .transport import (
    CapabilityResponse,
    CapabilityTransport,
    HTTPCapabilityTransport,
    LocalCapabilityTransport,
)

__all__ = [
    "CapabilityEndpoint",
    "CapabilityRegistry",
    "CapabilitySpec",
    "DEFAULT_CAPABILITIES",
    "build_capability_registry",
    "CapabilityResponse",
    "CapabilityTransport",
    "HTTPCapabilityTransport",
    "LocalCapabilityTransport",
]
