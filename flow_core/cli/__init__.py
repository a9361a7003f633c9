"""
flow CLI - command-line interface for running and inspecting workflows.

Commands:
- flow run <workflow> - Execute a workflow file
- flow validate <workflow> - Check a workflow for structural problems
- flow capabilities [--all] - List capability services
- flow node-types - Print the node type catalog
- flow health - Print a health summary
"""

from .main import cli

__all__ = ["cli"]
