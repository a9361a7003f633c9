"""
Workflow Executor - run a workflow graph to completion.

Orders the nodes, wires each node's inputs from upstream outputs, dispatches
to the node handlers and turns every failure into a terminal
ExecutionResult. Nodes run one at a time in topological order; the
wall-clock ceiling is checked between nodes.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, TYPE_CHECKING

from pydantic import ValidationError

from ..capabilities.registry import CapabilityRegistry
from ..capabilities.transport import CapabilityTransport
from ..errors import (
    DuplicateNodeError,
    ErrorKind,
    ExecutionTimeoutError,
    StructuralError,
    WorkflowError,
)
from ..models import Edge, ExecutionResult, ExecutionStatus, LogEntry, Node, Workflow
from ..nodes import create_handler_registry
from ..nodes.registry import HandlerRegistry
from ..services.config_service import get_executor_settings, get_http_settings
from ..trace.models import generate_run_id
from .graph import duplicate_node_ids, group_edges, topological_sort

if TYPE_CHECKING:
    from ..trace import TraceService

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

_TRACE_STATUS = {
    ExecutionStatus.COMPLETED: "success",
    ExecutionStatus.FAILED: "error",
    ExecutionStatus.TIMED_OUT: "timeout",
}


class ExecutionLogger:
    """
    Append-only execution log for one run.

    Every entry is also forwarded to the module logger at the matching level.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._start = clock()
        self._entries: List[LogEntry] = []

    @property
    def elapsed(self) -> float:
        return self._clock() - self._start

    def log(self, message: str, data: Optional[Dict[str, Any]] = None, level: str = "info") -> None:
        self._entries.append(LogEntry(
            timestamp=time.time(),
            elapsed=round(self.elapsed, 3),
            level=level,
            message=message,
            data=data or {},
        ))
        logger.log(_LOG_LEVELS.get(level, logging.INFO), message)

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)


class _Run:
    """Mutable state of a single execute() call."""

    def __init__(
        self,
        seed_inputs: Dict[str, Any],
        clock: Callable[[], float],
        tracer: Optional[TraceService] = None,
    ):
        self.run_id = generate_run_id()
        self.seed_inputs = seed_inputs
        self.node_outputs: Dict[str, Any] = {}
        self.log = ExecutionLogger(clock)
        self.tracer = tracer

    def lookup(self, source: str) -> Any:
        """Output of a node, else a seed input of the same name, else {}."""
        if source in self.node_outputs:
            return self.node_outputs[source]
        return self.seed_inputs.get(source, {})


class WorkflowExecutor:
    """
    Execute workflow graphs.

    The executor holds only configuration; all per-run state lives inside one
    execute() call, so a single instance can serve concurrent runs. An
    attached tracer is forked per run and the shared one adopts each run as
    it finishes.

    Example:
        executor = WorkflowExecutor(capabilities=registry, transport=transport)
        result = await executor.execute({"nodes": [...], "edges": [...]}, {"name": "Ada"})
        if result.success:
            print(result.outputs)
    """

    def __init__(
        self,
        capabilities: Optional[CapabilityRegistry | Mapping[str, Any]] = None,
        *,
        handlers: Optional[HandlerRegistry] = None,
        transport: Optional[CapabilityTransport] = None,
        max_execution_time: Optional[float] = None,
        http_timeout: Optional[float] = None,
        tracer: Optional[TraceService] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize executor.

        Args:
            capabilities: Capability registry (or its dict form) for capability nodes
            handlers: Handler registry; defaults to the built-ins + capabilities
            transport: Transport used by capability nodes
            max_execution_time: Wall-clock ceiling per run in seconds (default from config)
            http_timeout: Timeout for ``http`` nodes in seconds (default from config)
            tracer: Optional TraceService for event emission
            clock: Monotonic clock used for the deadline
        """
        if capabilities is None:
            capabilities = CapabilityRegistry()
        elif not isinstance(capabilities, CapabilityRegistry):
            capabilities = CapabilityRegistry(capabilities)
        self.capabilities = capabilities

        if max_execution_time is None:
            max_execution_time = get_executor_settings()["max_execution_time"]
        self.max_execution_time = float(max_execution_time)

        if handlers is None:
            if http_timeout is None:
                http_timeout = get_http_settings()["timeout"]
            handlers = create_handler_registry(capabilities, transport, http_timeout)
        self.handlers = handlers

        self.tracer = tracer
        self._clock = clock

    def set_tracer(self, tracer: Optional[TraceService]) -> None:
        """Set the tracer for event emission."""
        self.tracer = tracer

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def execute(
        self,
        workflow: Workflow | Mapping[str, Any],
        inputs: Optional[Mapping[str, Any]] = None,
        *,
        trace_path: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Execute a workflow.

        Args:
            workflow: Workflow model or its dict form ``{nodes, edges}``
            inputs: Seed inputs; edges may name them as sources, and input
                    nodes pick up the seed named after their id
            trace_path: Explicit trace file path (only used with a tracer)

        Returns:
            The terminal ExecutionResult. Never raises for workflow problems.
        """
        run = _Run(dict(inputs or {}), self._clock, self.tracer.fork() if self.tracer is not None else None)

        try:
            if not isinstance(workflow, Workflow):
                workflow = Workflow.model_validate(workflow)
        except ValidationError as e:
            return self._structural_failure(run, f"Invalid workflow structure: {e.error_count()} error(s)")

        if run.tracer is not None:
            run.run_id = run.tracer.start_run(
                workflow=workflow.name,
                node_count=len(workflow.nodes),
                edge_count=len(workflow.edges),
                input_data=run.seed_inputs,
                config={"max_execution_time": self.max_execution_time},
                trace_path=trace_path,
            )

        if not workflow.nodes:
            return self._structural_failure(run, "Workflow has no nodes")

        try:
            duplicates = duplicate_node_ids(workflow.nodes)
            if duplicates:
                raise DuplicateNodeError(duplicates)
            order = topological_sort(workflow.nodes, workflow.edges)
        except StructuralError as e:
            return self._structural_failure(run, str(e))

        node_map: Dict[str, Node] = {node.id: node for node in workflow.nodes}
        incoming_edges = group_edges(workflow.edges, by="target")

        for node_id in order:
            if run.log.elapsed > self.max_execution_time:
                timeout = ExecutionTimeoutError(run.log.elapsed, self.max_execution_time)
                run.log.log(str(timeout), {"elapsed": round(timeout.elapsed, 3), "limit": timeout.limit}, "error")
                return self._failure(run, ExecutionStatus.TIMED_OUT, str(timeout), ErrorKind.TIMEOUT)

            node = node_map[node_id]
            label = node.display_name
            run.log.log(f"Executing node: {label}")

            node_inputs = self._gather_inputs(run, node, incoming_edges.get(node_id, []))
            started = self._clock()
            if run.tracer is not None:
                run.tracer.node_enter(node_id, node.type, node_inputs)

            try:
                output = await self.handlers.dispatch(node.type, node_inputs, dict(node.config))
            except Exception as e:
                kind = e.kind if isinstance(e, WorkflowError) else ErrorKind.NODE_EXECUTION
                run.log.log(f"Node {label} failed: {e}", {"error_type": type(e).__name__}, "error")
                if run.tracer is not None:
                    run.tracer.error(type(e).__name__, str(e), error_kind=kind.value, node=node_id)
                return self._failure(
                    run,
                    ExecutionStatus.FAILED,
                    f"Node '{label}' failed: {e}",
                    kind,
                    failed_node=node_id,
                )

            run.node_outputs[node_id] = output
            if run.tracer is not None:
                run.tracer.node_exit(node_id, output, (self._clock() - started) * 1000)
            output_keys = list(output.keys()) if isinstance(output, dict) else []
            run.log.log(f"Node {label} completed", {"output_keys": output_keys})

        outputs = self._collect_outputs(workflow, order, run.node_outputs)
        execution_time = run.log.elapsed
        run.log.log(f"Workflow completed in {round(execution_time, 3)}s")

        result = ExecutionResult(
            success=True,
            status=ExecutionStatus.COMPLETED,
            outputs=outputs,
            all_outputs=dict(run.node_outputs),
            execution_time=execution_time,
            log=run.log.entries,
            run_id=run.run_id,
        )
        self._end_trace(run, result)
        return result

    def execute_sync(
        self,
        workflow: Workflow | Mapping[str, Any],
        inputs: Optional[Mapping[str, Any]] = None,
        **kwargs: Any,
    ) -> ExecutionResult:
        """Blocking wrapper around execute() for callers without an event loop."""
        return asyncio.run(self.execute(workflow, inputs, **kwargs))

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _gather_inputs(self, run: _Run, node: Node, edges: List[Edge]) -> Dict[str, Any]:
        """
        Build a node's input map from its incoming edges.

        A source output that is a map containing ``sourceHandle`` contributes
        that value; anything else contributes the whole source output. Two
        edges into the same handle: the later edge wins.
        """
        inputs: Dict[str, Any] = {}

        if node.type == "input":
            seed_name = node.config.get("name") or node.id
            if seed_name in run.seed_inputs:
                inputs["value"] = run.seed_inputs[seed_name]

        for edge in edges:
            source_output = run.lookup(edge.source)
            if isinstance(source_output, Mapping) and edge.source_handle in source_output:
                value = source_output[edge.source_handle]
            else:
                value = source_output

            if edge.target_handle in inputs:
                run.log.log(
                    f"Input '{edge.target_handle}' of node {node.display_name} overwritten by edge from {edge.source}",
                    {"handle": edge.target_handle, "source": edge.source},
                    "warning",
                )
            inputs[edge.target_handle] = value

        return inputs

    @staticmethod
    def _collect_outputs(
        workflow: Workflow,
        order: List[str],
        node_outputs: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Outputs of ``output`` nodes, or the last node's output as ``result``."""
        outputs = {
            node.id: node_outputs.get(node.id)
            for node in workflow.nodes
            if node.type == "output"
        }
        if not outputs:
            outputs["result"] = node_outputs.get(order[-1])
        return outputs

    def _structural_failure(self, run: _Run, error: str) -> ExecutionResult:
        run.log.log(error, level="error")
        if run.tracer is not None and run.tracer.is_active:
            run.tracer.error(StructuralError.__name__, error, error_kind=ErrorKind.STRUCTURAL.value)
        result = ExecutionResult(
            success=False,
            status=ExecutionStatus.FAILED,
            execution_time=run.log.elapsed,
            error=error,
            error_kind=ErrorKind.STRUCTURAL,
            log=run.log.entries,
            run_id=run.run_id,
        )
        self._end_trace(run, result)
        return result

    def _failure(
        self,
        run: _Run,
        status: ExecutionStatus,
        error: str,
        kind: ErrorKind,
        failed_node: Optional[str] = None,
    ) -> ExecutionResult:
        result = ExecutionResult(
            success=False,
            status=status,
            all_outputs=dict(run.node_outputs),
            partial_outputs=dict(run.node_outputs),
            execution_time=run.log.elapsed,
            error=error,
            error_kind=kind,
            failed_node=failed_node,
            log=run.log.entries,
            run_id=run.run_id,
        )
        self._end_trace(run, result)
        return result

    def _end_trace(self, run: _Run, result: ExecutionResult) -> None:
        if run.tracer is None or not run.tracer.is_active:
            return
        run.tracer.end_run(
            status=_TRACE_STATUS[ExecutionStatus(result.status)],
            output_data=result.outputs,
            error=result.error,
        )
        if self.tracer is not None:
            self.tracer.adopt(run.tracer)
