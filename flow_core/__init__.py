"""
flow-core: DAG workflow execution engine.

Provides:
- Workflow models (nodes, edges, execution results)
- Graph ordering with cycle detection
- Built-in node handlers and capability dispatch
- The workflow executor with timeout enforcement and execution logging
- JSONL tracing of workflow runs
"""

__version__ = "0.1.0"

from .errors import ErrorKind, WorkflowError
from .models import Edge, ExecutionResult, ExecutionStatus, LogEntry, Node, Workflow
from .capabilities import CapabilityRegistry, build_capability_registry
from .orchestrator import WorkflowExecutor, load_workflow, topological_sort, validate_workflow

__all__ = [
    "__version__",
    "CapabilityRegistry",
    "Edge",
    "ErrorKind",
    "ExecutionResult",
    "ExecutionStatus",
    "LogEntry",
    "Node",
    "Workflow",
    "WorkflowError",
    "WorkflowExecutor",
    "build_capability_registry",
    "load_workflow",
    "topological_sort",
    "validate_workflow",
]
