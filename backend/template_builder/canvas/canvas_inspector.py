"""
Canvas Inspector: a structured report of what the canvas will export.

This follows the same steps as ``build_export`` but never raises.
Instead it reports:

* Each node with its role, dependencies and dependents
* How each edge is wired (flow entry vs. task dependency)
* The linearized execution order, or the cycle that prevents it
* A readable outline of the exported process
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional

from template_builder.canvas.canvas_errors import CyclicDependencyError
from template_builder.canvas.canvas_model import (
    CanvasEdge,
    CanvasGraph,
    MasterNode,
    ProcessNode,
    TaskNode,
)
from template_builder.canvas.linearizer import linearize

logger = getLogger(__name__)


# ====================================================================
# Public API
# ====================================================================


def inspect_canvas(graph: CanvasGraph) -> Dict[str, Any]:
    """Inspect a canvas and produce the export report.

    Returns a dict containing:
        - ``outline``         : Readable text outline of the process
        - ``nodes``           : Per-node detail list
        - ``edges``           : Per-edge detail list
        - ``execution_order`` : Linearized task slugs (empty on a cycle)
        - ``summary``         : High-level stats
        - ``validation``      : Validation result
    """
    snapshot = graph.snapshot()
    errors = snapshot.validate_graph()

    order: List[str] = []
    cycle: Optional[List[str]] = None
    try:
        order = linearize(snapshot.task_nodes())
    except CyclicDependencyError as e:
        cycle = e.unresolved
        errors.append(str(e))

    edge_details = _build_edge_details(snapshot)
    entry_count = sum(1 for d in edge_details if d["wiring"] == "entry")

    return {
        "outline": _generate_outline(snapshot, order, cycle),
        "nodes": _build_node_details(snapshot),
        "edges": edge_details,
        "execution_order": order,
        "summary": {
            "process_slug": _process_slug(snapshot),
            "total_nodes": len(snapshot.nodes),
            "task_nodes": len(snapshot.task_nodes()),
            "master_nodes": len(snapshot.master_nodes()),
            "total_edges": len(snapshot.edges),
            "entry_edges": entry_count,
            "dependency_edges": len(edge_details) - entry_count,
            "has_cycle": cycle is not None,
            "is_valid": len(errors) == 0,
        },
        "validation": {
            "valid": len(errors) == 0,
            "errors": errors,
        },
    }


def _process_slug(graph: CanvasGraph) -> str:
    process = graph.process_node()
    return process.data.slug if process else ""


# ====================================================================
# Node detail builder
# ====================================================================


def _build_node_details(graph: CanvasGraph) -> List[Dict[str, Any]]:
    details = []
    for node in graph.nodes:
        if isinstance(node, ProcessNode):
            details.append({
                "id": node.id,
                "node_type": node.type,
                "slug": node.data.slug,
                "label": node.data.name or node.data.label,
                "role": "entry",
                "starts": [
                    _label(graph.get_node(e.target), e.target)
                    for e in graph.get_edges_from(node.id)
                ],
            })
            continue

        if isinstance(node, MasterNode):
            details.append({
                "id": node.id,
                "node_type": node.type,
                "slug": node.data.slug,
                "label": node.data.name or node.data.label,
                "role": "unconverted",
                "master_task_slug": node.data.master_task_slug,
            })
            continue

        dependents = [
            _label(graph.get_node(e.target), e.target)
            for e in graph.get_edges_from(node.id)
        ]
        details.append({
            "id": node.id,
            "node_type": node.type,
            "slug": node.data.slug,
            "label": node.data.name or node.data.label,
            "role": "entry_task" if graph.has_entry_edge(node.id) else "task",
            "depends_on": list(node.data.dependent_task_slug),
            "dependents": dependents,
            "in_sync": set(node.data.dependent_task_slug)
            == set(graph.expected_dependencies(node.id)),
            "api_endpoint": node.data.api_endpoint,
            "is_optional": node.data.is_optional,
        })

    return details


def _label(node, fallback: str) -> str:
    if node is None:
        return fallback
    return node.data.slug or node.data.name or node.id


# ====================================================================
# Edge detail builder
# ====================================================================


def _build_edge_details(graph: CanvasGraph) -> List[Dict[str, Any]]:
    details = []
    for edge in graph.edges:
        source = graph.get_node(edge.source)
        target = graph.get_node(edge.target)
        details.append({
            "id": edge.id,
            "source": edge.source,
            "source_label": _label(source, edge.source),
            "target": edge.target,
            "target_label": _label(target, edge.target),
            "wiring": _wiring(source, target),
            "description": _describe_edge(edge, source, target),
        })
    return details


def _wiring(source, target) -> str:
    if source is None or target is None:
        return "dangling"
    if isinstance(source, ProcessNode):
        return "entry"
    if isinstance(source, TaskNode) and isinstance(target, TaskNode):
        return "dependency"
    return "invalid"


def _describe_edge(edge: CanvasEdge, source, target) -> str:
    src = _label(source, edge.source)
    tgt = _label(target, edge.target)
    wiring = _wiring(source, target)
    if wiring == "entry":
        return f"Flow starts with \"{tgt}\""
    if wiring == "dependency":
        return f"\"{tgt}\" waits for \"{src}\""
    if wiring == "dangling":
        return f"Edge {edge.id} points at a missing node"
    return f"\"{src}\" → \"{tgt}\" is not a valid connection"


# ====================================================================
# Outline generator
# ====================================================================


def _generate_outline(
    graph: CanvasGraph,
    order: List[str],
    cycle: Optional[List[str]],
) -> str:
    """Render the export as a short numbered outline."""
    lines: List[str] = []
    process = graph.process_node()

    lines.append("# " + "═" * 60)
    if process is not None:
        lines.append(f"# Process: {process.data.name or '(unnamed)'} [{process.data.slug}]")
    else:
        lines.append("# Process: (missing)")
    lines.append(f"# Tasks: {len(graph.task_nodes())} | Edges: {len(graph.edges)}")
    lines.append("# " + "═" * 60)
    lines.append("")

    if cycle is not None:
        lines.append("# Cannot order tasks, dependency cycle among:")
        for slug in cycle:
            lines.append(f"#   • {slug}")
        return "\n".join(lines)

    for index, slug in enumerate(order, start=1):
        task = graph.find_task_by_slug(slug)
        if task is None:
            lines.append(f"{index:>3}. {slug}  (not on canvas)")
            continue
        deps = ", ".join(task.data.dependent_task_slug)
        entry = "  ⇐ process" if graph.has_entry_edge(task.id) else ""
        suffix = f"  ⇐ {deps}" if deps else entry
        lines.append(f"{index:>3}. {slug}{suffix}")

    return "\n".join(lines)
