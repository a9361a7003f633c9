"""
Expression evaluation, path extraction and template rendering.

The expression language is deliberately small: literals, one binary
comparison/boolean operator, one binary arithmetic operator, or a bare
property path. There is no parser for nested expressions and nothing here
ever calls eval().

Pure Python, no external dependencies.
"""
from __future__ import annotations

import json
import logging
import operator
import re
from typing import Any, Callable, Dict, Mapping, Optional, Sequence
from urllib.parse import quote_plus

from .errors import ExpressionError

logger = logging.getLogger(__name__)


_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_COMPARISON_RE = re.compile(r"^(\w+(?:\.\w+)*)\s*(===?|!==?|>=?|<=?|&&|\|\|)\s*(.+)$", re.DOTALL)
_ARITHMETIC_RE = re.compile(r"^(\w+(?:\.\w+)*)\s*([+\-*/])\s*(\w+(?:\.\w+)*)$")
_INDEXED_SEGMENT_RE = re.compile(r"^(\w*)((?:\[\d+\])+)$")
_INDEX_RE = re.compile(r"\[(\d+)\]")
_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")

_MISSING = object()
_SCALARS = (str, bytes, bytearray, int, float, bool)


# ---------------------------------------------------------------------------
# Path extraction
# ---------------------------------------------------------------------------

def _step(current: Any, key: Any) -> Any:
    """Take one step into *current*; returns _MISSING when there is nothing there."""
    if isinstance(current, Mapping):
        if key in current:
            return current[key]
        if isinstance(key, int) and str(key) in current:
            return current[str(key)]
        return _MISSING
    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if isinstance(key, str):
            if not key.isdigit():
                return _MISSING
            key = int(key)
        if 0 <= key < len(current):
            return current[key]
        return _MISSING
    if isinstance(current, _SCALARS) or not isinstance(key, str) or key.startswith("_"):
        return _MISSING
    value = getattr(current, key, _MISSING)
    return _MISSING if callable(value) else value


def extract_path(data: Any, path: str) -> Any:
    """
    Resolve a dotted/indexed path such as ``a.b[2].c`` against nested data.

    Mappings are walked by key, sequences by integer index (``[n]`` suffixes
    or purely numeric segments) and other objects by public, non-callable
    attribute. Strings, bytes, numbers and bools have no attribute steps.

    Returns:
        The value at *path*, *data* itself for an empty path, or None when any
        segment cannot be resolved.
    """
    if not path:
        return data

    current = data
    for segment in path.split("."):
        match = _INDEXED_SEGMENT_RE.match(segment)
        if match:
            key, indexes = match.group(1), [int(i) for i in _INDEX_RE.findall(match.group(2))]
            if key:
                current = _step(current, key)
            for index in indexes:
                if current is _MISSING:
                    break
                current = _step(current, index)
        else:
            current = _step(current, segment)

        if current is _MISSING or current is None:
            return None

    return current


# ---------------------------------------------------------------------------
# Operand resolution
# ---------------------------------------------------------------------------

def is_numeric(value: Any) -> bool:
    """True for ints/floats (not bools) and for strings that spell a number."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value))


def resolve_value(token: str, context: Mapping[str, Any]) -> Any:
    """
    Resolve a single operand.

    Surrounding quotes are stripped, then numeric and true/false/null literals
    are recognised; anything else is looked up as a path in *context*. An
    unresolvable path yields the token text itself.
    """
    token = token.strip().strip("\"'")

    if is_numeric(token):
        return float(token)
    if token == "true":
        return True
    if token == "false":
        return False
    if token == "null":
        return None

    value = extract_path(context, token)
    return token if value is None else value


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------

def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    if value is None:
        return 0
    if isinstance(value, str) and is_numeric(value):
        return float(value)
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Equality that treats numeric strings and numbers as comparable."""
    if left == right:
        return True
    if isinstance(left, bool) or isinstance(right, bool):
        return bool(left) == bool(right)
    if left is None or right is None:
        return not (left if right is None else right)
    if is_numeric(left) and is_numeric(right):
        return float(left) == float(right)
    return False


def _ordered(op: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def compare(left: Any, right: Any) -> bool:
        if is_numeric(left) and is_numeric(right):
            return op(float(left), float(right))
        try:
            return bool(op(left, right))
        except TypeError:
            return False
    return compare


_COMPARISONS: Dict[str, Callable[[Any, Any], bool]] = {
    "==": loose_equals,
    "===": loose_equals,
    "!=": lambda a, b: not loose_equals(a, b),
    "!==": lambda a, b: not loose_equals(a, b),
    ">": _ordered(operator.gt),
    ">=": _ordered(operator.ge),
    "<": _ordered(operator.lt),
    "<=": _ordered(operator.le),
    "&&": lambda a, b: bool(a) and bool(b),
    "||": lambda a, b: bool(a) or bool(b),
}


def _arithmetic(op: str, left: Any, right: Any) -> Any:
    if op == "+" and isinstance(left, str) and isinstance(right, str) \
            and not (is_numeric(left) and is_numeric(right)):
        return left + right

    a, b = _as_number(left), _as_number(right)
    if a is None or b is None:
        raise ExpressionError(
            f"Unsupported operands for {op}: {type(left).__name__} and {type(right).__name__}"
        )

    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    # Division by zero saturates to 0
    return a / b if b != 0 else 0


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def evaluate_expression(expression: str, context: Mapping[str, Any]) -> Any:
    """
    Evaluate a minimal expression against a flat context.

    Supported forms, tried in order:
        - ``true`` / ``false`` / numeric literals
        - ``path OP operand`` with OP one of == === != !== > >= < <= && ||
        - ``path OP path`` with OP one of + - * /
        - a bare property path (unresolved paths evaluate to their own text)

    Examples:
        >>> evaluate_expression("input > 10", {"input": 15})
        True
        >>> evaluate_expression("a / b", {"a": 4, "b": 0})
        0
    """
    expression = expression.strip()

    if expression == "true":
        return True
    if expression == "false":
        return False
    if is_numeric(expression):
        return float(expression)

    match = _COMPARISON_RE.match(expression)
    if match:
        left = resolve_value(match.group(1), context)
        right = resolve_value(match.group(3), context)
        return _COMPARISONS[match.group(2)](left, right)

    match = _ARITHMETIC_RE.match(expression)
    if match:
        left = resolve_value(match.group(1), context)
        right = resolve_value(match.group(3), context)
        return _arithmetic(match.group(2), left, right)

    return resolve_value(expression, context)


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def _scalar_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return json.dumps(value, default=str)


def render_template(template: str, values: Mapping[str, Any], url_encode: bool = False) -> str:
    """
    Substitute ``{{key}}`` placeholders from *values*.

    Missing keys render as an empty string; lists and dicts are JSON-encoded.
    With *url_encode* every substituted value is form-encoded (for URLs).
    """
    def replace(match: re.Match) -> str:
        text = _scalar_text(values.get(match.group(1)))
        return quote_plus(text) if url_encode else text

    return _PLACEHOLDER_RE.sub(replace, template)
