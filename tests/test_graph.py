"""Tests for topological ordering, validation and workflow loading."""
import pytest

from flow_core.errors import CycleError, ErrorKind
from flow_core.models import Edge, Node, Workflow
from flow_core.orchestrator.graph import (
    duplicate_node_ids,
    group_edges,
    topological_sort,
    validate_workflow,
)
from flow_core.orchestrator.loader import load_workflow, load_workflow_data


def _nodes(*ids):
    return [Node(id=node_id, type="transform") for node_id in ids]


def _edges(*pairs):
    return [Edge(source=source, target=target) for source, target in pairs]


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

class TestTopologicalSort:
    def test_linear_chain(self):
        order = topological_sort(_nodes("c", "b", "a"), _edges(("a", "b"), ("b", "c")))
        assert order == ["a", "b", "c"]

    def test_independent_nodes_keep_declaration_order(self):
        assert topological_sort(_nodes("x", "y", "z"), []) == ["x", "y", "z"]

    def test_diamond_is_deterministic(self):
        nodes = _nodes("a", "b", "c", "d")
        edges = _edges(("a", "b"), ("a", "c"), ("b", "d"), ("c", "d"))
        assert topological_sort(nodes, edges) == ["a", "b", "c", "d"]
        assert topological_sort(nodes, edges) == topological_sort(nodes, edges)

    def test_every_edge_points_forward(self):
        nodes = _nodes("e", "d", "c", "b", "a")
        edges = _edges(("a", "c"), ("b", "c"), ("c", "d"), ("a", "e"), ("d", "e"))
        order = topological_sort(nodes, edges)
        position = {node_id: index for index, node_id in enumerate(order)}
        assert sorted(order) == ["a", "b", "c", "d", "e"]
        for edge in edges:
            assert position[edge.source] < position[edge.target]

    def test_empty_workflow(self):
        assert topological_sort([], []) == []

    def test_unknown_endpoints_ignored(self):
        order = topological_sort(_nodes("a", "b"), _edges(("seed", "a"), ("a", "ghost"), ("a", "b")))
        assert order == ["a", "b"]

    def test_cycle_raises(self):
        with pytest.raises(CycleError) as exc_info:
            topological_sort(_nodes("a", "b", "c"), _edges(("a", "b"), ("b", "c"), ("c", "b")))
        assert set(exc_info.value.unresolved) == {"b", "c"}
        assert exc_info.value.kind == ErrorKind.STRUCTURAL

    def test_self_loop_raises(self):
        with pytest.raises(CycleError):
            topological_sort(_nodes("a"), _edges(("a", "a")))


class TestGraphHelpers:
    def test_duplicate_node_ids(self):
        assert duplicate_node_ids(_nodes("a", "b", "a", "c", "b")) == ["a", "b"]
        assert duplicate_node_ids(_nodes("a", "b")) == []

    def test_group_edges(self):
        edges = _edges(("a", "c"), ("b", "c"), ("a", "d"))
        by_target = group_edges(edges, by="target")
        assert [e.source for e in by_target["c"]] == ["a", "b"]
        by_source = group_edges(edges, by="source")
        assert [e.target for e in by_source["a"]] == ["c", "d"]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class TestValidateWorkflow:
    def test_valid(self):
        workflow = Workflow(nodes=_nodes("a", "b"), edges=_edges(("a", "b")))
        assert validate_workflow(workflow) == []

    def test_empty(self):
        assert "Workflow has no nodes" in validate_workflow(Workflow())

    def test_missing_target(self):
        workflow = Workflow(nodes=_nodes("a"), edges=_edges(("a", "b")))
        errors = validate_workflow(workflow)
        assert any("'b'" in e for e in errors)

    def test_sources_checked_against_inputs(self):
        workflow = Workflow(nodes=_nodes("a"), edges=_edges(("seed", "a")))
        assert validate_workflow(workflow) == []
        assert validate_workflow(workflow, input_names=["seed"]) == []
        errors = validate_workflow(workflow, input_names=[])
        assert any("'seed'" in e for e in errors)

    def test_duplicates_and_cycle_reported(self):
        workflow = Workflow(
            nodes=_nodes("a", "a", "b"),
            edges=_edges(("a", "b"), ("b", "a")),
        )
        errors = validate_workflow(workflow)
        assert any("Duplicate node ids: a" in e for e in errors)
        assert any("circular dependencies" in e for e in errors)


# ---------------------------------------------------------------------------
# Models and loading
# ---------------------------------------------------------------------------

class TestModels:
    def test_edge_defaults(self):
        edge = Edge(source="a", target="b")
        assert edge.source_handle == "output"
        assert edge.target_handle == "input"

    def test_edge_camel_case_and_null_handles(self):
        edge = Edge.model_validate({"source": "a", "target": "b", "sourceHandle": "true", "targetHandle": None})
        assert edge.source_handle == "true"
        assert edge.target_handle == "input"

    def test_builder_shaped_node(self):
        node = Node.model_validate({
            "id": "n1",
            "position": {"x": 10, "y": 20},
            "data": {"nodeType": "transform", "label": "Shape", "config": {"type": "json_parse"}},
        })
        assert node.type == "transform"
        assert node.label == "Shape"
        assert node.config == {"type": "json_parse"}
        assert node.display_name == "Shape"

    def test_display_name_falls_back_to_id(self):
        assert Node(id="plain").display_name == "plain"


class TestLoader:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text(
            "nodes:\n"
            "  - id: a\n"
            "    type: input\n"
            "  - id: b\n"
            "    type: output\n"
            "edges:\n"
            "  - source: a\n"
            "    target: b\n"
        )
        workflow = load_workflow(path)
        assert workflow.name == "pipeline"
        assert workflow.node_ids() == ["a", "b"]
        assert workflow.edges[0].target_handle == "input"

    def test_load_json(self, tmp_path):
        path = tmp_path / "wf.json"
        path.write_text('{"workflow": {"name": "wrapped", "nodes": [{"id": "x", "type": "output"}]}}')
        workflow = load_workflow(path)
        assert workflow.name == "wrapped"
        assert workflow.node_ids() == ["x"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_workflow(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="mapping"):
            load_workflow(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("nodes: [unclosed\n")
        with pytest.raises(ValueError, match="Invalid workflow file"):
            load_workflow(path)

    def test_load_data_keeps_explicit_name(self):
        workflow = load_workflow_data({"name": "mine", "nodes": []}, name="other")
        assert workflow.name == "mine"

    def test_example_workflows_are_valid(self, examples_dir):
        paths = sorted(examples_dir.glob("*.yaml"))
        assert paths
        for path in paths:
            assert validate_workflow(load_workflow(path)) == [], path.name
