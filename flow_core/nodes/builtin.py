"""
Built-in node handlers.

Each handler is a function of ``(inputs, config)`` returning the node's output
map. They hold no state and only ``delay`` awaits anything.
"""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Mapping

from ..errors import UnsupportedLanguageError
from ..expressions import evaluate_expression, extract_path, render_template
from .registry import HandlerRegistry

logger = logging.getLogger(__name__)

# Hard ceilings that bound the cost of a single node
MAX_LOOP_ITERATIONS = 1000
DEFAULT_LOOP_ITERATIONS = 100
MAX_DELAY_SECONDS = 30
DEFAULT_DELAY_SECONDS = 1

builtin_handlers = HandlerRegistry()


def _primary_input(inputs: Dict[str, Any]) -> Any:
    """The ``input`` handle unless it is missing or None, else the whole input map."""
    value = inputs.get("input")
    return inputs if value is None else value


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _loads_or(value: str, fallback: Any) -> Any:
    try:
        return json.loads(value)
    except ValueError:
        return fallback


# ---------------------------------------------------------------------------
# Input / output
# ---------------------------------------------------------------------------

@builtin_handlers.register("input")
def input_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Emit a caller-provided ``value`` or the configured default."""
    value = inputs["value"] if inputs.get("value") is not None else config.get("defaultValue")

    if isinstance(value, str) and config.get("inputType") == "json":
        value = _loads_or(value, value)

    return {"output": value}


@builtin_handlers.register("output")
def output_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    return {"result": _primary_input(inputs)}


# ---------------------------------------------------------------------------
# Transform
# ---------------------------------------------------------------------------

def _transform_map(data: List[Any], config: Dict[str, Any]) -> List[Any]:
    expression = config.get("expression") or "item"
    return [evaluate_expression(expression, {"item": item}) for item in data]


def _transform_filter(data: List[Any], config: Dict[str, Any]) -> List[Any]:
    condition = config.get("condition") or "true"
    return [item for item in data if evaluate_expression(condition, {"item": item})]


def _transform_reduce(data: List[Any], config: Dict[str, Any]) -> Any:
    expression = config.get("expression") or "acc + item"
    acc = config.get("initial", 0)
    for item in data:
        acc = evaluate_expression(expression, {"acc": acc, "item": item})
    return acc


_SEQUENCE_TRANSFORMS = {
    "map": _transform_map,
    "filter": _transform_filter,
    "reduce": _transform_reduce,
}


@builtin_handlers.register("transform")
def transform_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Reshape data between nodes.

    ``config["type"]`` selects the operation: passthrough (default),
    json_parse, json_stringify, extract, template, map, filter or reduce.
    map/filter/reduce leave non-sequence input untouched.
    """
    transform_type = config.get("type") or "passthrough"
    data = _primary_input(inputs)

    if transform_type == "json_parse":
        if isinstance(data, str):
            parsed = _loads_or(data, None)
            return {"output": data if parsed is None else parsed}
        return {"output": data}

    if transform_type == "json_stringify":
        return {"output": json.dumps(data, default=str)}

    if transform_type == "extract":
        return {"output": extract_path(data, config.get("path") or "")}

    if transform_type == "template":
        template = config.get("template") or "{{input}}"
        return {"output": render_template(template, inputs)}

    if transform_type in _SEQUENCE_TRANSFORMS:
        if _is_sequence(data):
            return {"output": _SEQUENCE_TRANSFORMS[transform_type](list(data), config)}
        return {"output": data}

    if transform_type != "passthrough":
        logger.warning(f"Unknown transform type '{transform_type}', passing input through")
    return {"output": data}


# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------

@builtin_handlers.register("condition")
def condition_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Route the input to the ``true`` or ``false`` handle.

    Both branches also populate ``output`` so consumers wired to the generic
    handle see the value either way.
    """
    condition = config.get("condition") or "true"
    data = _primary_input(inputs)

    if evaluate_expression(condition, {"input": data, **inputs}):
        return {"true": data, "output": data}
    return {"false": data, "output": data}


@builtin_handlers.register("loop")
def loop_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    items = inputs.get("items")
    if items is None:
        items = inputs.get("input")
    if items is None:
        items = []
    if isinstance(items, Mapping):
        items = list(items.values())
    elif not _is_sequence(items):
        items = [items]

    limit = config.get("maxIterations")
    limit = DEFAULT_LOOP_ITERATIONS if limit is None else int(limit)
    limit = max(0, min(MAX_LOOP_ITERATIONS, limit))

    results = [{"index": index, "item": item} for index, item in enumerate(items[:limit])]
    return {"output": results, "count": len(results)}


@builtin_handlers.register("merge")
def merge_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    return {"output": dict(inputs)}


@builtin_handlers.register("split")
def split_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Fan a map out so each of its keys becomes a separate output handle."""
    data = inputs.get("input")
    if isinstance(data, Mapping):
        return dict(data)
    return {"output": data}


@builtin_handlers.register("delay")
async def delay_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    seconds = config.get("seconds")
    seconds = DEFAULT_DELAY_SECONDS if seconds is None else float(seconds)
    seconds = min(MAX_DELAY_SECONDS, max(0, seconds))
    if seconds > 0:
        await asyncio.sleep(seconds)
    return dict(inputs)


@builtin_handlers.register("code")
def code_node(inputs: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
    """Evaluate an expression. No other language is ever executed."""
    language = config.get("language") or "expression"
    if language != "expression":
        raise UnsupportedLanguageError(language)
    return {"output": evaluate_expression(config.get("code") or "", inputs)}
