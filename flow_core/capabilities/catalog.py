"""
Default capability catalog.

Every known capability service with its namespace and routes. All entries
start unavailable; the embedding environment (or the ``capabilities`` config
section) switches on the ones that are actually installed.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, Mapping, Optional

from .registry import CapabilityRegistry

logger = logging.getLogger(__name__)


def _endpoint(route: str, description: str, method: str = "POST") -> Dict[str, str]:
    return {"method": method, "route": route, "description": description}


DEFAULT_CAPABILITIES: Dict[str, Dict[str, Any]] = {
    "language": {
        "name": "Language Engine",
        "description": "Natural language processing and generation",
        "namespace": "aevov-language/v1",
        "icon": "MessageSquare",
        "color": "#0ea5e9",
        "endpoints": [
            _endpoint("/generate", "Generate text"),
            _endpoint("/analyze", "Analyze text"),
        ],
    },
    "image": {
        "name": "Image Engine",
        "description": "AI image generation and manipulation",
        "namespace": "aevov-image/v1",
        "icon": "Image",
        "color": "#ec4899",
        "endpoints": [
            _endpoint("/generate", "Generate image"),
            _endpoint("/edit", "Edit image"),
        ],
    },
    "music": {
        "name": "Music Forge",
        "description": "AI music composition",
        "namespace": "aevov-music/v1",
        "icon": "Music",
        "color": "#8b5cf6",
        "endpoints": [_endpoint("/compose", "Compose music")],
    },
    "cognitive": {
        "name": "Cognitive Engine",
        "description": "Complex reasoning and problem solving",
        "namespace": "aevov-cognitive/v1",
        "icon": "Brain",
        "color": "#f97316",
        "endpoints": [_endpoint("/solve", "Solve problems")],
    },
    "reasoning": {
        "name": "Reasoning Engine",
        "description": "Logical inference",
        "namespace": "aevov-reasoning/v1",
        "icon": "Lightbulb",
        "color": "#eab308",
        "endpoints": [_endpoint("/infer", "Make inferences")],
    },
    "memory": {
        "name": "Memory Core",
        "description": "Persistent memory storage",
        "namespace": "aevov-memory/v1",
        "icon": "Database",
        "color": "#14b8a6",
        "endpoints": [
            _endpoint("/memory", "Store memory"),
            _endpoint("/memory/{address}", "Retrieve memory", method="GET"),
        ],
    },
    "embedding": {
        "name": "Embedding Engine",
        "description": "Vector embeddings",
        "namespace": "aevov-embedding/v1",
        "icon": "Layers",
        "color": "#6366f1",
        "endpoints": [_endpoint("/embed", "Generate embeddings")],
    },
    "transcription": {
        "name": "Transcription",
        "description": "Speech to text",
        "namespace": "aevov-transcription/v1",
        "icon": "Mic",
        "color": "#f59e0b",
        "endpoints": [_endpoint("/transcribe", "Transcribe audio")],
    },
    "stream": {
        "name": "Stream Engine",
        "description": "Video streaming",
        "namespace": "aevov-stream/v1",
        "icon": "Video",
        "color": "#ef4444",
        "endpoints": [_endpoint("/start-session", "Start stream")],
    },
    "pattern": {
        "name": "Pattern Recognition",
        "description": "Pattern detection",
        "namespace": "bloom/v1",
        "icon": "Scan",
        "color": "#84cc16",
        "endpoints": [_endpoint("/process", "Process patterns")],
    },
    "super_app": {
        "name": "App Generator",
        "description": "Generate applications",
        "namespace": "aevov-super-app/v1",
        "icon": "Rocket",
        "color": "#f43f5e",
        "endpoints": [_endpoint("/spawn", "Spawn app")],
    },
    "vision": {
        "name": "Web Scraper",
        "description": "Extract web data",
        "namespace": "vision-depth/v1",
        "icon": "Eye",
        "color": "#06b6d4",
        "endpoints": [_endpoint("/scrape", "Scrape web")],
    },
    "simulation": {
        "name": "Simulation Engine",
        "description": "Physics simulation",
        "namespace": "aevov-simulation/v1",
        "icon": "Atom",
        "color": "#a855f7",
        "endpoints": [_endpoint("/simulate", "Run simulation")],
    },
    "runtime": {
        "name": "Runtime",
        "description": "Workflow scheduling",
        "namespace": "aevov-runtime/v1",
        "icon": "Clock",
        "color": "#64748b",
        "endpoints": [_endpoint("/execute", "Execute")],
    },
}


def build_capability_registry(
    overrides: Optional[Mapping[str, Mapping[str, Any]]] = None,
    include_defaults: bool = True,
) -> CapabilityRegistry:
    """
    Build a registry from the default catalog plus per-capability overrides.

    Overrides are shallow-merged onto the catalog entry of the same key;
    keys that are not in the catalog declare new capabilities and must carry
    at least ``name`` and ``namespace``.

    Args:
        overrides: e.g. ``{"language": {"available": True}}``
        include_defaults: Start from DEFAULT_CAPABILITIES (False = overrides only)
    """
    declarations: Dict[str, Dict[str, Any]] = (
        copy.deepcopy(DEFAULT_CAPABILITIES) if include_defaults else {}
    )
    for key, override in (overrides or {}).items():
        declarations.setdefault(key, {}).update(override or {})

    registry = CapabilityRegistry(declarations)
    available = [key for key, spec in registry.items() if spec.available]
    logger.info(f"Capability registry ready: {len(available)}/{len(registry)} available")
    return registry
