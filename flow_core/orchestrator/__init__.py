"""
Workflow orchestration: graph ordering, loading and execution.
"""
from .graph import topological_sort, validate_workflow
from .executor import ExecutionLogger, WorkflowExecutor
from .loader import load_workflow, load_workflow_data

__all__ = [
    "ExecutionLogger",
    "WorkflowExecutor",
    "load_workflow",
    "load_workflow_data",
    "topological_sort",
    "validate_workflow",
]
