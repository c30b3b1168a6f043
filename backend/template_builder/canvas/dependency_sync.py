"""
Dependency Synchronizer: pure graph mutations.

Each ``apply_*`` function takes a ``CanvasGraph`` and returns a new one,
leaving the input untouched, or raises a ``CanvasError``. After every
successful call each task node's ``dependent_task_slug`` holds exactly
the slugs of its task-node predecessors.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional, Union

from template_builder.canvas.canvas_errors import (
    CanvasError,
    CyclicDependencyError,
    DuplicateProcessNode,
    InvalidDependencyConnection,
)
from template_builder.canvas.canvas_model import (
    TASK,
    CanvasEdge,
    CanvasGraph,
    MasterNode,
    ProcessNode,
    TaskNode,
    TaskNodeData,
    new_edge_id,
)

logger = getLogger(__name__)

AnyNode = Union[ProcessNode, TaskNode, MasterNode]


# ============================================================================
# Nodes
# ============================================================================


def apply_add_node(graph: CanvasGraph, node: AnyNode) -> CanvasGraph:
    """Add a node. A second process node raises ``DuplicateProcessNode``."""
    if isinstance(node, ProcessNode) and graph.process_node() is not None:
        raise DuplicateProcessNode()
    if graph.get_node(node.id) is not None:
        raise CanvasError(f"Node id already in use: {node.id}")

    new_graph = graph.snapshot()
    new_graph.nodes.append(node.model_copy(deep=True))
    return new_graph


def apply_remove_node(graph: CanvasGraph, node_id: str) -> CanvasGraph:
    """Remove a node together with its incident edges."""
    new_graph = graph
    for edge in graph.edges:
        if edge.source == node_id or edge.target == node_id:
            new_graph = apply_disconnect(new_graph, edge.id)

    new_graph = new_graph.snapshot()
    new_graph.nodes = [n for n in new_graph.nodes if n.id != node_id]
    return new_graph


def apply_update_node(
    graph: CanvasGraph,
    node_id: str,
    data: Dict[str, Any],
    node_type: Optional[str] = None,
) -> CanvasGraph:
    """Merge form data into a node's data.

    ``node_type="task"`` on a master node converts it into a task node
    with the same ID and position. When a task slug changes, every
    dependent's list is rebuilt from its incoming edges.
    """
    node = graph.get_node(node_id)
    if node is None:
        raise CanvasError(f"Unknown node: {node_id}")

    merged = node.data.model_dump()
    merged.update(data)
    # Dependencies follow edges, never form input.
    merged.pop("dependent_task_slug", None)

    if isinstance(node, MasterNode) and node_type == TASK:
        replacement: AnyNode = TaskNode(
            id=node.id,
            position=dict(node.position),
            data=TaskNodeData.model_validate(merged),
        )
    elif node_type not in (None, node.type):
        raise CanvasError(f"Cannot change a {node.type} node into {node_type}")
    else:
        if isinstance(node, TaskNode):
            merged["dependent_task_slug"] = list(node.data.dependent_task_slug)
        replacement = node.model_copy(
            update={"data": type(node.data).model_validate(merged)}, deep=True
        )

    new_graph = graph.snapshot()
    new_graph.nodes = [replacement if n.id == node_id else n for n in new_graph.nodes]

    if isinstance(node, TaskNode) and isinstance(replacement, TaskNode):
        if node.data.slug != replacement.data.slug:
            _resync_dependents(new_graph, node_id)
    return new_graph


def _resync_dependents(graph: CanvasGraph, source_id: str) -> None:
    """Rebuild the dependency list of every task fed by ``source_id`` from its edges.

    Covers renames as well as a slug set for the first time after connecting.
    """
    for edge in graph.get_edges_from(source_id):
        target = graph.get_node(edge.target)
        if isinstance(target, TaskNode):
            target.data.dependent_task_slug = graph.expected_dependencies(target.id)


# ============================================================================
# Edges
# ============================================================================


def apply_connect(
    graph: CanvasGraph,
    source_id: str,
    target_id: str,
    edge_id: Optional[str] = None,
    reject_cycles: bool = False,
) -> CanvasGraph:
    """Connect ``source_id`` → ``target_id``.

    A self-loop returns ``graph`` unchanged. Rule violations raise
    ``InvalidDependencyConnection`` (or ``CyclicDependencyError`` when
    ``reject_cycles`` is set).
    """
    if source_id == target_id:
        return graph

    source = graph.get_node(source_id)
    target = graph.get_node(target_id)
    if source is None or target is None:
        raise InvalidDependencyConnection(
            f"Cannot connect unknown node: {source_id if source is None else target_id}"
        )
    if not isinstance(target, TaskNode):
        raise InvalidDependencyConnection(f"A {target.type} node cannot be a connection target")
    if isinstance(source, MasterNode):
        raise InvalidDependencyConnection(
            "Master nodes must be converted to tasks before connecting"
        )
    if any(e.source == source_id for e in graph.get_edges_to(target_id)):
        raise InvalidDependencyConnection("These nodes are already connected")

    if isinstance(source, ProcessNode):
        if target.data.dependent_task_slug:
            raise InvalidDependencyConnection(
                f"Task '{target.data.slug}' already depends on other tasks "
                f"and cannot also start the flow"
            )
    else:
        if graph.has_entry_edge(target_id):
            raise InvalidDependencyConnection(
                f"Task '{target.data.slug}' starts the flow and cannot depend on other tasks"
            )
        if reject_cycles and _reaches(graph, target_id, source_id):
            raise CyclicDependencyError([source.data.slug, target.data.slug])

    new_graph = graph.snapshot()
    if isinstance(source, TaskNode) and source.data.slug:
        new_target = new_graph.get_node(target_id)
        if source.data.slug not in new_target.data.dependent_task_slug:
            new_target.data.dependent_task_slug.append(source.data.slug)

    new_graph.edges.append(
        CanvasEdge(id=edge_id or new_edge_id(), source=source_id, target=target_id)
    )
    return new_graph


def apply_disconnect(graph: CanvasGraph, edge_id: str) -> CanvasGraph:
    """Remove an edge and drop the source slug from the target's dependencies.

    Unresolvable endpoints skip the bookkeeping; the edge is removed anyway.
    """
    edge = graph.get_edge(edge_id)
    if edge is None:
        logger.debug(f"Disconnect ignored, unknown edge: {edge_id}")
        return graph

    new_graph = graph.snapshot()
    new_graph.edges = [e for e in new_graph.edges if e.id != edge_id]

    source = new_graph.get_node(edge.source)
    target = new_graph.get_node(edge.target)
    if isinstance(source, TaskNode) and isinstance(target, TaskNode):
        still_linked = any(e.source == source.id for e in new_graph.get_edges_to(target.id))
        if not still_linked:
            target.data.dependent_task_slug = [
                s for s in target.data.dependent_task_slug if s != source.data.slug
            ]
    return new_graph


def _reaches(graph: CanvasGraph, start_id: str, goal_id: str) -> bool:
    """True if ``goal_id`` is reachable from ``start_id`` along task edges."""
    seen = set()
    stack: List[str] = [start_id]
    while stack:
        current = stack.pop()
        if current == goal_id:
            return True
        if current in seen:
            continue
        seen.add(current)
        stack.extend(e.target for e in graph.get_edges_from(current))
    return False
