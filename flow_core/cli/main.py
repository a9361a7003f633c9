"""
flow CLI Main Entry Point

Usage:
    flow run <workflow.yaml> [--input key=value ...] [--trace out.jsonl]
    flow validate <workflow.yaml>
    flow capabilities [--all]
    flow node-types
    flow health
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click

from .. import __version__
from ..capabilities import (
    CapabilityRegistry,
    HTTPCapabilityTransport,
    build_capability_registry,
)
from ..capabilities.transport import CapabilityTransport
from ..nodes import get_node_type_definitions
from ..orchestrator import WorkflowExecutor, load_workflow, validate_workflow
from ..services.config_service import (
    get_capability_settings,
    get_executor_settings,
    get_http_settings,
    load_config,
)
from ..trace import TraceService


def parse_input_pairs(pairs: Tuple[str, ...]) -> Dict[str, Any]:
    """Parse ``key=value`` pairs; values are JSON-decoded when possible."""
    inputs: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected KEY=VALUE, got '{pair}'", param_hint="--input")
        key, raw = pair.split("=", 1)
        try:
            inputs[key] = json.loads(raw)
        except ValueError:
            inputs[key] = raw
    return inputs


def build_runtime(config_path: Optional[str]) -> Tuple[CapabilityRegistry, Optional[CapabilityTransport]]:
    """Capability registry and transport described by the config file."""
    settings = get_capability_settings(config_path)
    registry = build_capability_registry(settings.get("overrides"))
    transport = None
    if settings.get("base_url"):
        transport = HTTPCapabilityTransport(
            settings["base_url"],
            timeout=float(settings.get("timeout", get_http_settings(config_path)["timeout"])),
            headers=settings.get("headers"),
        )
    return registry, transport


@click.group()
@click.version_option(version=__version__, prog_name="flow")
@click.option("--config", "-c", "config_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="Path to flow.yaml (default: $FLOW_CONFIG_PATH or ./flow.yaml)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """
    flow - DAG workflow execution engine.

    Run, validate and inspect workflow graphs from the command line.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if config_path:
        load_config(config_path)


@cli.command("run")
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--input", "-i", "input_pairs", multiple=True, help="Seed input as KEY=VALUE (repeatable)")
@click.option("--inputs-file", "-f", default=None, type=click.Path(exists=True, dir_okay=False),
              help="JSON file with seed inputs")
@click.option("--timeout", "-t", default=None, type=float, help="Max execution time in seconds")
@click.option("--trace", "trace_out", default=None, help="Write a JSONL trace to this path")
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.pass_context
def run_cmd(
    ctx: click.Context,
    workflow_file: str,
    input_pairs: Tuple[str, ...],
    inputs_file: Optional[str],
    timeout: Optional[float],
    trace_out: Optional[str],
    as_json: bool,
):
    """
    Execute a workflow file.

    WORKFLOW_FILE: YAML or JSON workflow definition

    Examples:
        flow run examples/workflows/greeting.yaml --input name='"Ada"'
        flow run pipeline.yaml -f inputs.json --trace traces/pipeline.jsonl
    """
    config_path = ctx.obj.get("config_path")

    inputs: Dict[str, Any] = {}
    if inputs_file:
        inputs.update(json.loads(Path(inputs_file).read_text(encoding="utf-8")))
    inputs.update(parse_input_pairs(input_pairs))

    try:
        workflow = load_workflow(workflow_file)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    registry, transport = build_runtime(config_path)
    tracer = TraceService(output_dir=Path(trace_out).parent) if trace_out else None
    executor = WorkflowExecutor(
        registry,
        transport=transport,
        max_execution_time=timeout if timeout is not None else get_executor_settings(config_path)["max_execution_time"],
        http_timeout=get_http_settings(config_path)["timeout"],
        tracer=tracer,
    )

    result = executor.execute_sync(workflow, inputs, trace_path=trace_out)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        status = "OK" if result.success else result.status.upper()
        click.echo(f"Status: {status} ({result.execution_time:.3f}s)")
        if result.success:
            click.echo(json.dumps(result.outputs, indent=2, default=str))
        else:
            click.echo(f"Error: {result.error}", err=True)
            if result.failed_node:
                click.echo(f"Failed node: {result.failed_node}", err=True)
        if trace_out:
            click.echo(f"Trace saved to: {trace_out}")

    if not result.success:
        sys.exit(1)


@cli.command("validate")
@click.argument("workflow_file", type=click.Path(exists=True, dir_okay=False))
def validate_cmd(workflow_file: str):
    """Check a workflow file for structural problems."""
    try:
        workflow = load_workflow(workflow_file)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    errors = validate_workflow(workflow)
    if errors:
        click.echo(f"Workflow '{workflow.name}' has {len(errors)} problem(s):")
        for error in errors:
            click.echo(f"  - {error}")
        sys.exit(1)

    click.echo(f"Workflow '{workflow.name}' is valid ({len(workflow.nodes)} nodes, {len(workflow.edges)} edges)")


@cli.command("capabilities")
@click.option("--all", "include_unavailable", is_flag=True, help="Include unavailable capabilities")
@click.pass_context
def capabilities_cmd(ctx: click.Context, include_unavailable: bool):
    """List capability services."""
    registry, _ = build_runtime(ctx.obj.get("config_path"))
    capabilities = registry.list(include_unavailable)

    if not capabilities:
        click.echo("No capabilities available.")
        click.echo("Enable them under 'capabilities.overrides' in flow.yaml, or use --all.")
        return

    for key, spec in capabilities.items():
        marker = "available" if spec.available else "unavailable"
        click.echo(f"  {key:<14} {spec.name} [{marker}]")
        click.echo(f"    Namespace: {spec.namespace}")
        for endpoint in spec.endpoints:
            click.echo(f"    {endpoint.method:<6} {endpoint.route}  {endpoint.description}")


@cli.command("node-types")
@click.option("--all", "include_unavailable", is_flag=True, help="Include unavailable capabilities")
@click.pass_context
def node_types_cmd(ctx: click.Context, include_unavailable: bool):
    """Print the node type catalog as JSON."""
    registry, _ = build_runtime(ctx.obj.get("config_path"))
    definitions = get_node_type_definitions(registry, include_unavailable)
    click.echo(json.dumps({"node_types": definitions}, indent=2))


@cli.command("health")
@click.pass_context
def health_cmd(ctx: click.Context):
    """Print a health summary."""
    registry, transport = build_runtime(ctx.obj.get("config_path"))
    health = {
        **registry.health(),
        "version": __version__,
        "transport": type(transport).__name__ if transport else None,
        "max_execution_time": get_executor_settings(ctx.obj.get("config_path"))["max_execution_time"],
    }
    click.echo(json.dumps(health, indent=2))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
