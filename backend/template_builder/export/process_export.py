"""
Process template export.

Validates the canvas, orders the task nodes, and assembles what the
admin API needs: the process template JSON and the task CSV.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import Any, Dict, List

from template_builder.canvas.canvas_errors import (
    DependencyMismatch,
    DisconnectedTaskNode,
    DuplicateTaskSlug,
    MissingProcessNode,
    UnconvertedMasterNode,
)
from template_builder.canvas.canvas_model import CanvasGraph, ProcessNode, TaskNode
from template_builder.canvas.linearizer import order_task_nodes
from template_builder.export.csv_writer import TASK_CSV_FILENAME, render_task_csv

logger = getLogger(__name__)


@dataclass
class ExportBundle:
    """Everything submitted for one process template."""
    process_template: Dict[str, Any]
    tasks: List[TaskNode] = field(default_factory=list)
    csv_text: str = ""
    csv_filename: str = TASK_CSV_FILENAME

    @property
    def task_slugs(self) -> List[str]:
        return [t.data.slug for t in self.tasks]


def validate_for_export(graph: CanvasGraph, allow_disconnected: bool = False) -> None:
    """Raise the first blocking problem found on the canvas."""
    if graph.process_node() is None:
        raise MissingProcessNode()
    if graph.master_nodes():
        raise UnconvertedMasterNode()

    if not allow_disconnected:
        disconnected = graph.disconnected_task_ids()
        if disconnected:
            raise DisconnectedTaskNode(disconnected)

    slugs = [t.data.slug.strip() for t in graph.task_nodes()]
    duplicates = [s for i, s in enumerate(slugs) if not s or s in slugs[:i]]
    if duplicates:
        raise DuplicateTaskSlug(list(dict.fromkeys(duplicates)))

    mismatched = [
        t.data.slug for t in graph.task_nodes()
        if set(t.data.dependent_task_slug) != set(graph.expected_dependencies(t.id))
    ]
    if mismatched:
        raise DependencyMismatch(mismatched)


def build_process_template_payload(process: ProcessNode) -> Dict[str, Any]:
    data = process.data
    return {
        "name": data.name,
        "slug": data.slug,
        "input_format": data.input_format,
        "http_headers": data.header,
        "email_list": data.email_list,
        "description": data.description,
    }


def build_export(graph: CanvasGraph, allow_disconnected: bool = False) -> ExportBundle:
    """Validate and linearize the canvas into an ``ExportBundle``.

    Raises:
        TemplateValidationError: If the canvas is not exportable.
        CyclicDependencyError: If task dependencies form a cycle.
    """
    snapshot = graph.snapshot()
    validate_for_export(snapshot, allow_disconnected=allow_disconnected)

    ordered = order_task_nodes(snapshot.task_nodes())
    bundle = ExportBundle(
        process_template=build_process_template_payload(snapshot.process_node()),
        tasks=ordered,
        csv_text=render_task_csv(ordered),
    )
    logger.info(
        f"Export prepared for process '{bundle.process_template['slug']}': "
        f"{len(ordered)} tasks"
    )
    return bundle
