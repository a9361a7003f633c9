"""
Error taxonomy for workflow execution.

Every failure the executor can report maps onto one ErrorKind so callers can
branch on the kind instead of parsing message text.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional


class ErrorKind(str, Enum):
    """
    Kinds of workflow failure.

    - STRUCTURAL: the graph itself is unusable (empty, cyclic, duplicate ids)
    - NODE_EXECUTION: a handler raised while running a node
    - CAPABILITY_UNAVAILABLE: a known capability is switched off
    - TIMEOUT: the run exceeded its wall-clock ceiling
    - TRANSPORT: an outbound HTTP call failed below the HTTP layer
    """
    STRUCTURAL = "structural"
    NODE_EXECUTION = "node_execution"
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"


class WorkflowError(Exception):
    """Base class for all workflow errors."""
    kind: ErrorKind = ErrorKind.NODE_EXECUTION


# ---------------------------------------------------------------------------
# Structural errors (raised before any node runs)
# ---------------------------------------------------------------------------

class StructuralError(WorkflowError):
    """The workflow graph cannot be executed."""
    kind = ErrorKind.STRUCTURAL


class CycleError(StructuralError):
    """The graph contains at least one cycle."""

    def __init__(self, unresolved: List[str]):
        self.unresolved = unresolved
        super().__init__("Workflow contains circular dependencies")


class DuplicateNodeError(StructuralError):
    """Two or more nodes share an id."""

    def __init__(self, node_ids: List[str]):
        self.node_ids = node_ids
        super().__init__(f"Duplicate node ids: {', '.join(node_ids)}")


# ---------------------------------------------------------------------------
# Node errors (raised by handlers)
# ---------------------------------------------------------------------------

class NodeExecutionError(WorkflowError):
    """A node handler failed."""
    kind = ErrorKind.NODE_EXECUTION


class UnknownNodeTypeError(NodeExecutionError):
    def __init__(self, node_type: str):
        self.node_type = node_type
        super().__init__(f"Unknown node type: {node_type}")


class CapabilityUnavailableError(NodeExecutionError):
    """The capability is registered but its service is not available."""
    kind = ErrorKind.CAPABILITY_UNAVAILABLE

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Capability '{name}' is not available")


class CapabilityCallError(NodeExecutionError):
    """The capability answered with a client or server error status."""

    def __init__(self, name: str, status: int, message: str):
        self.name = name
        self.status = status
        super().__init__(f"Capability {name} error: {message}")


class UnsupportedLanguageError(NodeExecutionError):
    def __init__(self, language: str):
        self.language = language
        super().__init__("Code execution is limited to expressions")


class ExpressionError(NodeExecutionError):
    """An expression could not be evaluated."""


class TransportError(NodeExecutionError):
    """Network-level failure of an outbound request."""
    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__(message)


# ---------------------------------------------------------------------------
# Deadline
# ---------------------------------------------------------------------------

class ExecutionTimeoutError(WorkflowError):
    """The run exceeded its wall-clock ceiling at a node boundary."""
    kind = ErrorKind.TIMEOUT

    def __init__(self, elapsed: float, limit: float):
        self.elapsed = elapsed
        self.limit = limit
        super().__init__("Workflow execution timed out")
