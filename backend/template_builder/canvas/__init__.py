"""
Canvas Editor — process template builder core.

Holds the node-edge graph of a process template, keeps task
dependencies in step with the edges, and orders tasks for export.

Architecture:
    canvas_model      — Node variants, edges and the graph value
    canvas_errors     — CanvasError taxonomy
    dependency_sync   — Pure apply_* graph mutations
    linearizer        — Kahn ordering of task slugs
    templates         — Dropped nodes, process template expansion, ID regeneration
    node_forms        — Form parsing and master task template payloads
    template_store    — JSON-file persistence of saved templates
    canvas_session    — EditorSession, the owner of the canvas being edited
    canvas_inspector  — Read-only export report

Only the dependency-free core is re-exported here; import the session,
store and template builders from their own modules.
"""

from template_builder.canvas.canvas_errors import (
    CanvasError,
    CyclicDependencyError,
    DisconnectedTaskNode,
    DuplicateProcessNode,
    DuplicateTaskSlug,
    EmptyTemplate,
    InvalidDependencyConnection,
    MalformedJsonField,
    MissingProcessNode,
    RemoteApiError,
    TemplateValidationError,
    UnconvertedMasterNode,
)
from template_builder.canvas.canvas_model import (
    CanvasEdge,
    CanvasGraph,
    MasterNode,
    MasterNodeData,
    ProcessNode,
    ProcessNodeData,
    TaskNode,
    TaskNodeData,
    parse_node,
)
from template_builder.canvas.dependency_sync import (
    apply_add_node,
    apply_connect,
    apply_disconnect,
    apply_remove_node,
    apply_update_node,
)
from template_builder.canvas.linearizer import linearize, order_task_nodes

__all__ = [
    "CanvasError",
    "CyclicDependencyError",
    "DisconnectedTaskNode",
    "DuplicateProcessNode",
    "DuplicateTaskSlug",
    "EmptyTemplate",
    "InvalidDependencyConnection",
    "MalformedJsonField",
    "MissingProcessNode",
    "RemoteApiError",
    "TemplateValidationError",
    "UnconvertedMasterNode",
    "CanvasEdge",
    "CanvasGraph",
    "MasterNode",
    "MasterNodeData",
    "ProcessNode",
    "ProcessNodeData",
    "TaskNode",
    "TaskNodeData",
    "parse_node",
    "apply_add_node",
    "apply_connect",
    "apply_disconnect",
    "apply_remove_node",
    "apply_update_node",
    "linearize",
    "order_task_nodes",
]
