"""
Workflow graph ordering and validation.

Pure Python, no external dependencies.
"""
from __future__ import annotations

import logging
from collections import Counter, deque
from typing import Dict, Iterable, List, Optional, Sequence

from ..errors import CycleError
from ..models import Edge, Node, Workflow

logger = logging.getLogger(__name__)


def topological_sort(nodes: Sequence[Node], edges: Sequence[Edge]) -> List[str]:
    """
    Order node ids so every edge points from an earlier to a later node.

    Kahn's algorithm with a FIFO queue seeded in the given node order, so the
    result is deterministic for a fixed input. Edges whose endpoints are not
    node ids do not affect the order.

    Returns:
        Ordered node ids ([] for an empty workflow)

    Raises:
        CycleError: If any cycle (including a self-loop) exists
    """
    in_degree: Dict[str, int] = {}
    adjacency: Dict[str, List[str]] = {}
    for node in nodes:
        in_degree.setdefault(node.id, 0)
        adjacency.setdefault(node.id, [])

    for edge in edges:
        if edge.source in adjacency and edge.target in in_degree:
            in_degree[edge.target] += 1
            adjacency[edge.source].append(edge.target)

    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    ordered: List[str] = []

    while queue:
        node_id = queue.popleft()
        ordered.append(node_id)
        for neighbor in adjacency[node_id]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    if len(ordered) < len(in_degree):
        unresolved = [node_id for node_id in in_degree if in_degree[node_id] > 0]
        logger.warning(f"Cycle detected among nodes: {unresolved}")
        raise CycleError(unresolved)

    return ordered


def duplicate_node_ids(nodes: Iterable[Node]) -> List[str]:
    """Node ids that appear more than once, in first-seen order."""
    counts = Counter(node.id for node in nodes)
    return [node_id for node_id, count in counts.items() if count > 1]


def group_edges(edges: Iterable[Edge], by: str) -> Dict[str, List[Edge]]:
    """Group edges by their ``source`` or ``target`` attribute."""
    grouped: Dict[str, List[Edge]] = {}
    for edge in edges:
        grouped.setdefault(getattr(edge, by), []).append(edge)
    return grouped


def validate_workflow(
    workflow: Workflow,
    input_names: Optional[Iterable[str]] = None,
) -> List[str]:
    """
    Validate the workflow structure.

    Args:
        workflow: Workflow to check
        input_names: Seed input names that edges may use as sources. When
                     None, edge sources are not checked.

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not workflow.nodes:
        errors.append("Workflow has no nodes")

    duplicates = duplicate_node_ids(workflow.nodes)
    if duplicates:
        errors.append(f"Duplicate node ids: {', '.join(duplicates)}")

    node_ids = set(workflow.node_ids())
    known_sources = None if input_names is None else node_ids | set(input_names)

    for edge in workflow.edges:
        if edge.target not in node_ids:
            errors.append(f"Edge target '{edge.target}' not found in nodes")
        if known_sources is not None and edge.source not in known_sources:
            errors.append(f"Edge source '{edge.source}' is neither a node nor an input")

    try:
        topological_sort(workflow.nodes, workflow.edges)
    except CycleError as e:
        errors.append(f"{e} (nodes: {', '.join(e.unresolved)})")

    return errors
