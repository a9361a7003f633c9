"""
Workflow data model - Pydantic models.

Defines the workflow graph handed to the executor and the terminal result
it hands back. Node and edge models accept both the compact shape
(``{id, type, config}``) and the visual builder shape
(``{id, data: {nodeType, label, config}}``).
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import ErrorKind


# =============================================================================
# GRAPH
# =============================================================================

class Node(BaseModel):
    """A node in the workflow graph."""
    id: str
    type: str = "unknown"
    config: Dict[str, Any] = Field(default_factory=dict)
    label: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _unwrap_builder_data(cls, value: Any) -> Any:
        if not isinstance(value, dict) or not isinstance(value.get("data"), dict):
            return value
        data = value["data"]
        merged = {k: v for k, v in value.items() if k != "data"}
        if data.get("nodeType"):
            merged["type"] = data["nodeType"]
        if "config" in data and "config" not in value:
            merged["config"] = data["config"]
        if data.get("label") and not value.get("label"):
            merged["label"] = data["label"]
        return merged

    @field_validator("config", mode="before")
    @classmethod
    def _none_config(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def display_name(self) -> str:
        """Label used in log messages and error text."""
        return self.label or self.id


class Edge(BaseModel):
    """A directed data-flow link between two node handles."""
    source: str
    target: str
    source_handle: str = Field(default="output", alias="sourceHandle")
    target_handle: str = Field(default="input", alias="targetHandle")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @field_validator("source_handle", mode="before")
    @classmethod
    def _default_source_handle(cls, value: Any) -> Any:
        return "output" if value is None else value

    @field_validator("target_handle", mode="before")
    @classmethod
    def _default_target_handle(cls, value: Any) -> Any:
        return "input" if value is None else value


class Workflow(BaseModel):
    """A complete workflow definition: nodes plus the edges between them."""
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)
    name: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("nodes", "edges", mode="before")
    @classmethod
    def _none_list(cls, value: Any) -> Any:
        return [] if value is None else value

    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]


# =============================================================================
# RESULT
# =============================================================================

class ExecutionStatus(str, Enum):
    """Terminal state of one execution."""
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


class LogEntry(BaseModel):
    """One entry of the per-run execution log."""
    timestamp: float
    elapsed: float
    level: str = "info"
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


class ExecutionResult(BaseModel):
    """
    Terminal value returned once per execute() call.

    Attributes:
        success: True only when every node ran
        status: completed | failed | timed_out
        outputs: Values of output nodes (or ``result`` from the last node)
        all_outputs: Every executed node's output, keyed by node id
        execution_time: Wall-clock seconds spent in execute()
        error: Human readable failure reason
        error_kind: Machine readable failure kind
        failed_node: Id of the node whose handler raised
        partial_outputs: Node outputs gathered before a node/timeout failure
        log: The execution log
        run_id: Identifier of this run (matches the trace, when tracing)
    """
    success: bool
    status: ExecutionStatus
    outputs: Dict[str, Any] = Field(default_factory=dict)
    all_outputs: Dict[str, Any] = Field(default_factory=dict)
    execution_time: float = 0.0
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    failed_node: Optional[str] = None
    partial_outputs: Optional[Dict[str, Any]] = None
    log: List[LogEntry] = Field(default_factory=list)
    run_id: Optional[str] = None

    model_config = ConfigDict(frozen=True, use_enum_values=True)

    @property
    def started(self) -> bool:
        """False for structural failures, where no node was ever dispatched."""
        return self.error_kind != ErrorKind.STRUCTURAL.value

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict, dropping unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True)
