"""
Canvas Template Builders.

Factory functions that turn dropped items and stored templates into
canvas nodes and graphs:

* blank nodes dropped from the node palette
* master / task nodes dropped from the task template library
* a remote process template expanded onto an empty canvas
* a saved canvas template reloaded with fresh identifiers
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional, Union

from template_builder.admin_api.models import ProcessTemplateDetail
from template_builder.canvas.canvas_errors import CanvasError
from template_builder.canvas.canvas_model import (
    MASTER,
    PROCESS,
    TASK,
    CanvasEdge,
    CanvasGraph,
    MasterNode,
    MasterNodeData,
    ProcessNode,
    ProcessNodeData,
    TaskNode,
    TaskNodeData,
    new_node_id,
    new_state_id,
    parse_slug_list,
)
from template_builder.canvas.node_forms import validate_node_data
from template_builder.config import EditorConfig

logger = getLogger(__name__)

AnyNode = Union[ProcessNode, TaskNode, MasterNode]
Position = Dict[str, float]


# ============================================================================
# Dropped nodes
# ============================================================================


def blank_node(node_type: str, position: Position) -> AnyNode:
    """Build an empty node of ``node_type`` from the node palette."""
    label = node_type.capitalize()
    if node_type == PROCESS:
        return ProcessNode(position=dict(position), data=ProcessNodeData(label=label))
    if node_type == TASK:
        return TaskNode(position=dict(position), data=TaskNodeData(label=label))
    if node_type == MASTER:
        return MasterNode(position=dict(position), data=MasterNodeData(label=label))
    raise CanvasError(f"Unknown node type: {node_type}")


def master_node_from_template(template: Dict[str, Any], position: Position) -> MasterNode:
    """Drop a reusable task template as a master node."""
    data = dict(template)
    data["master_task_slug"] = template.get("slug", "")
    return MasterNode(position=dict(position), data=validate_node_data(MasterNodeData, data))


def task_node_from_template(
    template: Dict[str, Any],
    position: Position,
    master_task_slug: str = "",
) -> TaskNode:
    """Drop a saved task template directly as a task node.

    The dropped node has no edges yet, so any stored dependencies are cleared.
    """
    data = dict(template)
    data["dependent_task_slug"] = []
    data["master_task_slug"] = master_task_slug
    data["state_id"] = new_state_id()
    return TaskNode(position=dict(position), data=validate_node_data(TaskNodeData, data))


# ============================================================================
# Remote process template expansion
# ============================================================================


def expand_process_template(
    process: Dict[str, Any],
    detail: ProcessTemplateDetail,
    drop_position: Position,
    config: Optional[EditorConfig] = None,
) -> CanvasGraph:
    """Expand a remote process template into a full canvas graph.

    Layout::

        process node at the drop position
        task nodes on a grid centred below it, ``max_nodes_per_row``
        per row, ``grid_spacing`` apart, starting ``task_row_offset``
        below the process node

    Raises:
        MalformedJsonField: If a template's JSON field text does not parse.
        CanvasError: If a template holds any other invalid value.
    """
    cfg = config or EditorConfig()
    spacing = cfg.grid_spacing
    per_row = max(cfg.max_nodes_per_row, 1)

    process_node = ProcessNode(
        id=f"process-{process.get('id')}",
        position={"x": drop_position["x"], "y": drop_position["y"]},
        data=validate_node_data(ProcessNodeData, process),
    )

    tasks = detail.task_templates
    row_width = min(len(tasks), per_row) * spacing
    start_x = process_node.position["x"] - row_width / 2 + spacing / 2
    start_y = process_node.position["y"] + cfg.task_row_offset

    task_nodes: List[TaskNode] = []
    slug_by_task_id: Dict[str, str] = {}
    for index, task in enumerate(tasks):
        raw = dict(task)
        raw["dependent_task_slug"] = []
        node = TaskNode(
            id=f"task-{task.get('id')}",
            position={
                "x": start_x + (index % per_row) * spacing,
                "y": start_y + (index // per_row) * spacing,
            },
            data=validate_node_data(TaskNodeData, raw),
        )
        task_nodes.append(node)
        slug_by_task_id[str(task.get("id"))] = node.data.slug

    mapping = detail.child_parent_mappings
    for node, task in zip(task_nodes, tasks):
        parents = mapping.get(str(task.get("id")), [])
        node.data.dependent_task_slug = parse_slug_list(
            [slug_by_task_id.get(str(p)) for p in parents if p != 0]
        )

    task_ids = {n.id for n in task_nodes}
    edges: List[CanvasEdge] = []
    for child_id, parents in mapping.items():
        target = f"task-{child_id}"
        if target not in task_ids:
            logger.warning(f"Mapping references unknown task template: {child_id}")
            continue
        for parent in parents:
            if parent == 0:
                edges.append(CanvasEdge(
                    id=f"edge-{process_node.id}-{child_id}",
                    source=process_node.id, target=target,
                ))
                continue
            source = f"task-{parent}"
            if source not in task_ids:
                logger.warning(f"Mapping references unknown parent task: {parent}")
                continue
            edges.append(CanvasEdge(
                id=f"edge-{parent}-{child_id}", source=source, target=target,
            ))

    logger.info(
        f"Expanded process template {process_node.data.slug or process.get('id')}: "
        f"{len(task_nodes)} tasks, {len(edges)} edges"
    )
    return CanvasGraph(nodes=[process_node, *task_nodes], edges=edges)


# ============================================================================
# Saved template reload
# ============================================================================


def regenerate_ids(graph: CanvasGraph) -> CanvasGraph:
    """Copy a graph with fresh node, edge and state IDs.

    Edges whose endpoints are missing from the graph are dropped.
    """
    id_map: Dict[str, str] = {}
    nodes: List[AnyNode] = []
    for node in graph.nodes:
        clone = node.model_copy(deep=True)
        clone.id = new_node_id(node.type)
        clone.data.state_id = new_state_id()
        id_map[node.id] = clone.id
        nodes.append(clone)

    edges: List[CanvasEdge] = []
    for edge in graph.edges:
        if edge.source not in id_map or edge.target not in id_map:
            logger.warning(f"Dropping dangling edge {edge.id}: {edge.source} → {edge.target}")
            continue
        edges.append(CanvasEdge(source=id_map[edge.source], target=id_map[edge.target]))

    viewport = dict(graph.viewport) if graph.viewport else None
    return CanvasGraph(nodes=nodes, edges=edges, viewport=viewport)
