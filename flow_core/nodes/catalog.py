"""
Node type catalog.

Describes every node type a workflow builder can place: its handles, its
configuration fields and how it is presented. Capability node types are
generated from the capability registry.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Optional

from ..capabilities.registry import CapabilityRegistry


def _handle(handle_id: str, label: str, handle_type: str = "any") -> Dict[str, str]:
    return {"id": handle_id, "label": label, "type": handle_type}


BUILTIN_NODE_TYPES: Dict[str, Dict[str, Any]] = {
    "input": {
        "label": "Input",
        "category": "input",
        "description": "Starting point for workflow data",
        "icon": "ArrowRightCircle",
        "color": "#22c55e",
        "inputs": [],
        "outputs": [_handle("output", "Output")],
        "configFields": [
            {"key": "defaultValue", "label": "Default Value", "type": "textarea"},
            {"key": "inputType", "label": "Input Type", "type": "select", "options": [
                {"value": "text", "label": "Text"},
                {"value": "json", "label": "JSON"},
            ]},
        ],
    },
    "output": {
        "label": "Output",
        "category": "output",
        "description": "Final result of the workflow",
        "icon": "ArrowLeftCircle",
        "color": "#ef4444",
        "inputs": [_handle("input", "Input")],
        "outputs": [],
        "configFields": [],
    },
    "transform": {
        "label": "Transform",
        "category": "transform",
        "description": "Transform data between nodes",
        "icon": "Wand2",
        "color": "#a855f7",
        "inputs": [_handle("input", "Input")],
        "outputs": [_handle("output", "Output")],
        "configFields": [
            {"key": "type", "label": "Transform Type", "type": "select", "options": [
                {"value": "passthrough", "label": "Passthrough"},
                {"value": "json_parse", "label": "Parse JSON"},
                {"value": "json_stringify", "label": "Stringify JSON"},
                {"value": "extract", "label": "Extract Path"},
                {"value": "template", "label": "Template"},
                {"value": "map", "label": "Map"},
                {"value": "filter", "label": "Filter"},
                {"value": "reduce", "label": "Reduce"},
            ]},
            {"key": "path", "label": "Path", "type": "text"},
            {"key": "template", "label": "Template", "type": "textarea"},
            {"key": "expression", "label": "Expression", "type": "text"},
            {"key": "condition", "label": "Condition", "type": "text"},
        ],
    },
    "condition": {
        "label": "Condition",
        "category": "control",
        "description": "Branch based on condition",
        "icon": "GitBranch",
        "color": "#f59e0b",
        "inputs": [_handle("input", "Input")],
        "outputs": [_handle("true", "True"), _handle("false", "False")],
        "configFields": [{"key": "condition", "label": "Condition", "type": "text"}],
    },
    "loop": {
        "label": "Loop",
        "category": "control",
        "description": "Iterate over array",
        "icon": "Repeat",
        "color": "#f59e0b",
        "inputs": [_handle("items", "Items", "array")],
        "outputs": [_handle("output", "Results", "array")],
        "configFields": [{"key": "maxIterations", "label": "Max Iterations", "type": "number"}],
    },
    "merge": {
        "label": "Merge",
        "category": "control",
        "description": "Combine several inputs into one object",
        "icon": "Merge",
        "color": "#f59e0b",
        "inputs": [_handle("input", "Input")],
        "outputs": [_handle("output", "Output", "object")],
        "configFields": [],
    },
    "split": {
        "label": "Split",
        "category": "control",
        "description": "Expose each key of an object as its own output",
        "icon": "Split",
        "color": "#f59e0b",
        "inputs": [_handle("input", "Input", "object")],
        "outputs": [_handle("output", "Output")],
        "configFields": [],
    },
    "delay": {
        "label": "Delay",
        "category": "utility",
        "description": "Wait before continuing (max 30 seconds)",
        "icon": "Timer",
        "color": "#64748b",
        "inputs": [_handle("input", "Input")],
        "outputs": [_handle("input", "Output")],
        "configFields": [{"key": "seconds", "label": "Seconds", "type": "number"}],
    },
    "http": {
        "label": "HTTP Request",
        "category": "utility",
        "description": "Make HTTP requests",
        "icon": "Globe",
        "color": "#3b82f6",
        "inputs": [_handle("body", "Body")],
        "outputs": [_handle("output", "Response")],
        "configFields": [
            {"key": "url", "label": "URL", "type": "text"},
            {"key": "method", "label": "Method", "type": "select", "options": [
                {"value": m, "label": m} for m in ("GET", "POST", "PUT", "PATCH", "DELETE")
            ]},
            {"key": "headers", "label": "Headers", "type": "json"},
            {"key": "body", "label": "Body", "type": "json"},
        ],
    },
    "code": {
        "label": "Expression",
        "category": "transform",
        "description": "Evaluate a simple expression",
        "icon": "Code",
        "color": "#a855f7",
        "inputs": [_handle("input", "Input")],
        "outputs": [_handle("output", "Output")],
        "configFields": [{"key": "code", "label": "Expression", "type": "text"}],
    },
}


def get_node_type_definitions(
    capabilities: Optional[CapabilityRegistry] = None,
    include_unavailable: bool = False,
) -> Dict[str, Dict[str, Any]]:
    """
    Return every node type definition keyed by type.

    Args:
        capabilities: Registry whose capabilities become node types
        include_unavailable: Also describe capabilities that are switched off
    """
    definitions = {
        node_type: {"type": node_type, **copy.deepcopy(definition)}
        for node_type, definition in BUILTIN_NODE_TYPES.items()
    }

    if capabilities is None:
        return definitions

    for key, spec in capabilities.list(include_unavailable).items():
        definitions[key] = {
            "type": key,
            "label": spec.name,
            "category": "capability",
            "description": spec.description,
            "icon": spec.icon,
            "color": spec.color,
            "available": spec.available,
            "inputs": [_handle("input", "Input")],
            "outputs": [_handle("output", "Output")],
            "configFields": [
                {"key": "endpoint", "label": "Endpoint", "type": "select", "options": [
                    {"value": e.route, "label": e.description or e.route} for e in spec.endpoints
                ]},
                {"key": "params", "label": "Parameters", "type": "json"},
            ],
        }

    return definitions
