"""
Workflow trace system.

Usage:
    from flow_core.trace import TraceService

    tracer = TraceService(output_dir="traces")
    executor = WorkflowExecutor(tracer=tracer)
    result = await executor.execute(workflow, inputs)
    print(tracer.trace_path)
"""
from .models import (
    EventKind,
    EventName,
    ErrorData,
    NodeEnterData,
    NodeExitData,
    RunEndData,
    RunStartData,
    TraceEvent,
    TraceRun,
    generate_run_id,
    hash_data,
)
from .service import TraceService, sanitize_trace_input
from .writer import TraceWriter

__all__ = [
    "EventKind",
    "EventName",
    "ErrorData",
    "NodeEnterData",
    "NodeExitData",
    "RunEndData",
    "RunStartData",
    "TraceEvent",
    "TraceRun",
    "TraceService",
    "TraceWriter",
    "generate_run_id",
    "hash_data",
    "sanitize_trace_input",
]
