"""
Template builder tests

Dropped nodes, remote process template expansion, and ID regeneration.
"""

import pytest

from template_builder.admin_api.models import ProcessTemplateDetail
from template_builder.canvas.canvas_errors import CanvasError, MalformedJsonField
from template_builder.canvas.canvas_model import (
    CanvasEdge,
    CanvasGraph,
    MasterNode,
    ProcessNode,
    TaskNode,
)
from template_builder.canvas.templates import (
    blank_node,
    expand_process_template,
    master_node_from_template,
    regenerate_ids,
    task_node_from_template,
)
from template_builder.config import EditorConfig


@pytest.fixture
def remote_process():
    return {"id": 5, "name": "Flow", "process_slug": "flow", "description": "Remote"}


@pytest.fixture
def remote_detail():
    return ProcessTemplateDetail.model_validate({
        "task_templates": [
            {"id": 11, "name": "A", "slug": "a"},
            {"id": 12, "name": "B", "slug": "b"},
            {"id": 13, "name": "C", "slug": "c", "dependent_task_slug": "stale"},
        ],
        "child_parent_mappings": {11: [0], 12: [11], 13: [11, 12]},
    })


class TestDroppedNodes:
    @pytest.mark.parametrize("node_type,cls", [
        ("process", ProcessNode),
        ("task", TaskNode),
        ("master", MasterNode),
    ])
    def test_blank_node(self, node_type, cls):
        node = blank_node(node_type, {"x": 10, "y": 20})

        assert isinstance(node, cls)
        assert node.position == {"x": 10, "y": 20}
        assert node.data.label == node_type.capitalize()

    def test_blank_node_unknown_type(self):
        with pytest.raises(CanvasError):
            blank_node("decision", {"x": 0, "y": 0})

    def test_master_from_template(self):
        node = master_node_from_template({"id": 3, "slug": "kyc", "name": "KYC"}, {"x": 0, "y": 0})

        assert node.data.master_task_slug == "kyc"
        assert node.data.template_id == 3

    def test_task_from_template_clears_dependencies(self):
        template = {"slug": "kyc", "dependent_task_slug": "a,b", "state_id": "state-old"}
        node = task_node_from_template(template, {"x": 0, "y": 0}, master_task_slug="kyc_master")

        assert node.data.dependent_task_slug == []
        assert node.data.master_task_slug == "kyc_master"
        assert node.data.state_id != "state-old"

    def test_malformed_json_in_dropped_master(self):
        with pytest.raises(MalformedJsonField) as exc_info:
            master_node_from_template({"slug": "kyc", "eta": "{oops"}, {"x": 0, "y": 0})
        assert exc_info.value.field == "eta"

    def test_malformed_json_in_dropped_task(self):
        with pytest.raises(MalformedJsonField):
            task_node_from_template({"slug": "kyc", "output_format": "[1,"}, {"x": 0, "y": 0})


class TestExpandProcessTemplate:
    def test_nodes_and_ids(self, remote_process, remote_detail):
        graph = expand_process_template(remote_process, remote_detail, {"x": 1000, "y": 100})

        assert [n.id for n in graph.nodes] == ["process-5", "task-11", "task-12", "task-13"]
        assert graph.process_node().data.slug == "flow"
        assert graph.process_node().position == {"x": 1000, "y": 100}

    def test_dependencies_and_edges_from_mapping(self, remote_process, remote_detail):
        graph = expand_process_template(remote_process, remote_detail, {"x": 0, "y": 0})

        assert graph.get_node("task-11").data.dependent_task_slug == []
        assert graph.get_node("task-12").data.dependent_task_slug == ["a"]
        assert graph.get_node("task-13").data.dependent_task_slug == ["a", "b"]
        assert [e.id for e in graph.edges] == [
            "edge-process-5-11",
            "edge-11-12",
            "edge-11-13",
            "edge-12-13",
        ]
        assert graph.validate_graph() == []

    def test_grid_is_centred_below_process(self, remote_process, remote_detail):
        graph = expand_process_template(remote_process, remote_detail, {"x": 1000, "y": 100})
        positions = [n.position for n in graph.task_nodes()]

        assert positions == [
            {"x": 700, "y": 400},
            {"x": 1000, "y": 400},
            {"x": 1300, "y": 400},
        ]

    def test_grid_wraps_rows(self, remote_process):
        detail = ProcessTemplateDetail(
            task_templates=[{"id": i, "slug": f"t{i}"} for i in range(1, 8)],
            child_parent_mappings={str(i): [0] for i in range(1, 8)},
        )
        graph = expand_process_template(remote_process, detail, {"x": 0, "y": 0})
        tasks = graph.task_nodes()

        assert tasks[0].position == {"x": -600, "y": 300}
        assert tasks[4].position == {"x": 600, "y": 300}
        assert tasks[5].position == {"x": -600, "y": 600}

    def test_layout_follows_config(self, remote_process, remote_detail):
        config = EditorConfig(grid_spacing=100, max_nodes_per_row=2, task_row_offset=50)
        graph = expand_process_template(remote_process, remote_detail, {"x": 0, "y": 0}, config)
        positions = [n.position for n in graph.task_nodes()]

        assert positions == [
            {"x": -50, "y": 50},
            {"x": 50, "y": 50},
            {"x": -50, "y": 150},
        ]

    def test_unknown_mapping_entries_are_skipped(self, remote_process):
        detail = ProcessTemplateDetail(
            task_templates=[{"id": 1, "slug": "one"}],
            child_parent_mappings={"1": [0, 99], "42": [1]},
        )
        graph = expand_process_template(remote_process, detail, {"x": 0, "y": 0})

        assert [e.id for e in graph.edges] == ["edge-process-5-1"]

    def test_malformed_task_template(self, remote_process):
        detail = ProcessTemplateDetail.model_validate({
            "task_templates": [{"id": 11, "slug": "a", "input_format": "{bad"}],
            "child_parent_mappings": {11: [0]},
        })
        with pytest.raises(MalformedJsonField) as exc_info:
            expand_process_template(remote_process, detail, {"x": 0, "y": 0})
        assert exc_info.value.field == "input_format"

    def test_invalid_task_value(self, remote_process):
        detail = ProcessTemplateDetail.model_validate({
            "task_templates": [{"id": 11, "slug": "a", "api_timeout_in_ms": "soon"}],
        })
        with pytest.raises(CanvasError, match="api_timeout_in_ms"):
            expand_process_template(remote_process, detail, {"x": 0, "y": 0})


class TestRegenerateIds:
    def test_all_ids_are_fresh_and_edges_remapped(self, connected_graph):
        result = regenerate_ids(connected_graph)

        old_ids = {n.id for n in connected_graph.nodes}
        new_ids = {n.id for n in result.nodes}
        assert old_ids.isdisjoint(new_ids)
        assert {e.id for e in result.edges}.isdisjoint({e.id for e in connected_graph.edges})
        for old, new in zip(connected_graph.nodes, result.nodes):
            assert new.data.state_id != old.data.state_id
            assert new.data.slug == old.data.slug
        assert result.validate_graph() == []

    def test_dangling_edges_are_dropped(self, make_task):
        graph = CanvasGraph(
            nodes=[make_task("a")],
            edges=[CanvasEdge(source="task-a", target="task-gone")],
        )
        assert regenerate_ids(graph).edges == []

    def test_input_is_untouched(self, connected_graph):
        before = connected_graph.model_dump()
        regenerate_ids(connected_graph)
        assert connected_graph.model_dump() == before
