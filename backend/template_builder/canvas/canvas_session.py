"""
Editor Session: the single owner of the canvas being edited.

Every user action goes through one method here. The method runs the
matching pure ``apply_*`` operation and commits the new graph, or
reports why the action was refused. ``CanvasError`` never escapes a
session method; the UI shows ``EditResult.reason`` instead.

Async loads are guarded by a generation counter: a remote template
that arrives after the canvas was cleared or reloaded is discarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Any, Callable, Dict, List, Optional, Union

from template_builder.admin_api.client import AdminApiClient
from template_builder.canvas.canvas_errors import CanvasError, RemoteApiError
from template_builder.canvas.canvas_model import (
    PROCESS,
    TASK,
    CanvasGraph,
    MasterNode,
    ProcessNode,
    TaskNode,
)
from template_builder.canvas.dependency_sync import (
    apply_add_node,
    apply_connect,
    apply_disconnect,
    apply_remove_node,
    apply_update_node,
)
from template_builder.canvas.linearizer import linearize
from template_builder.canvas.node_forms import (
    build_master_template_request,
    submit_process_form,
    submit_task_form,
)
from template_builder.canvas.template_store import SavedTemplate, TemplateStore
from template_builder.canvas.templates import (
    blank_node,
    expand_process_template,
    master_node_from_template,
    regenerate_ids,
    task_node_from_template,
)
from template_builder.config import EditorConfig, get_config
from template_builder.export.process_export import ExportBundle, build_export

logger = getLogger(__name__)

AnyNode = Union[ProcessNode, TaskNode, MasterNode]
Position = Dict[str, float]


@dataclass
class EditResult:
    """Outcome of a user action: accepted, or refused with a reason."""
    accepted: bool
    reason: Optional[str] = None
    value: Any = None

    @classmethod
    def ok(cls, value: Any = None) -> "EditResult":
        return cls(accepted=True, value=value)

    @classmethod
    def rejected(cls, reason: Optional[str]) -> "EditResult":
        return cls(accepted=False, reason=reason)

    def __bool__(self) -> bool:
        return self.accepted


class EditorSession:
    """Owns the canvas graph and the unsaved-changes bookkeeping."""

    def __init__(
        self,
        config: Optional[EditorConfig] = None,
        graph: Optional[CanvasGraph] = None,
    ) -> None:
        self._config = config or get_config(EditorConfig)
        self._graph = graph.snapshot() if graph is not None else CanvasGraph()
        self._generation = 0
        self._initial_positions: Dict[str, Position] = {}
        self.has_changes = False
        self.is_loaded_template = False
        self.has_saved = False

    # ========================================================================
    # State access
    # ========================================================================

    @property
    def graph(self) -> CanvasGraph:
        """A snapshot of the current canvas."""
        return self._graph.snapshot()

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_save_enabled(self) -> bool:
        if self._graph.process_node() is None:
            return False
        if self.is_loaded_template and not self.has_changes:
            return False
        if self.has_saved and not self.has_changes:
            return False
        return True

    def _attempt(self, action: str, operation: Callable[..., CanvasGraph], *args, **kwargs) -> EditResult:
        try:
            new_graph = operation(self._graph, *args, **kwargs)
        except CanvasError as e:
            logger.warning(f"{action} rejected: {e}")
            return EditResult.rejected(str(e))
        self._graph = new_graph
        self.has_changes = True
        return EditResult.ok()

    # ========================================================================
    # Nodes
    # ========================================================================

    def add_node(self, node: AnyNode) -> EditResult:
        result = self._attempt("Add node", apply_add_node, node)
        if result:
            result.value = node.id
        return result

    def drop_node(self, node_type: str, position: Position) -> EditResult:
        """Drop a blank node from the node palette."""
        try:
            node = blank_node(node_type, position)
        except CanvasError as e:
            return EditResult.rejected(str(e))
        return self.add_node(node)

    def drop_master_template(self, template: Dict[str, Any], position: Position) -> EditResult:
        """Drop a task template from the library as a master node."""
        return self._drop(master_node_from_template, template, position)

    def drop_task_template(
        self,
        template: Dict[str, Any],
        position: Position,
        master_task_slug: str = "",
    ) -> EditResult:
        return self._drop(task_node_from_template, template, position, master_task_slug)

    def _drop(self, factory: Callable[..., AnyNode], *args) -> EditResult:
        try:
            node = factory(*args)
        except CanvasError as e:
            logger.warning(f"Dropped template rejected: {e}")
            return EditResult.rejected(str(e))
        return self.add_node(node)

    def update_node(
        self,
        node_id: str,
        form: Dict[str, Any],
        node_type: Optional[str] = None,
    ) -> EditResult:
        """Apply a submitted node form. JSON fields arrive as raw text."""
        node = self._graph.get_node(node_id)
        if node is None:
            return EditResult.rejected(f"Unknown node: {node_id}")
        try:
            if node.type == PROCESS:
                data = submit_process_form(form)
            else:
                data = submit_task_form(form)
        except CanvasError as e:
            logger.warning(f"Form for {node_id} rejected: {e}")
            return EditResult.rejected(str(e))
        return self._attempt("Update node", apply_update_node, node_id, data, node_type)

    def convert_master_to_task(self, node_id: str, form: Dict[str, Any]) -> EditResult:
        """Turn a master node into a task node ("use as task")."""
        return self.update_node(node_id, form, node_type=TASK)

    def remove_node(self, node_id: str) -> EditResult:
        if self._graph.get_node(node_id) is None:
            return EditResult.rejected(f"Unknown node: {node_id}")
        return self._attempt("Remove node", apply_remove_node, node_id)

    # ========================================================================
    # Edges
    # ========================================================================

    def on_edge_connect(self, source_id: str, target_id: str) -> EditResult:
        if source_id == target_id:
            return EditResult.rejected(None)
        result = self._attempt(
            "Connect",
            apply_connect,
            source_id,
            target_id,
            reject_cycles=self._config.reject_cycles_on_connect,
        )
        if result:
            result.value = self._graph.edges[-1].id
        return result

    def on_edge_remove(self, edge_id: str) -> None:
        if self._graph.get_edge(edge_id) is None:
            return
        self._attempt("Disconnect", apply_disconnect, edge_id)

    # ========================================================================
    # Canvas lifecycle
    # ========================================================================

    def clear(self, confirmed: bool) -> bool:
        """Empty the canvas. Nothing happens without confirmation."""
        if self._graph.is_empty or not confirmed:
            return False
        self._generation += 1
        self._graph = CanvasGraph()
        self._initial_positions = {}
        self.is_loaded_template = False
        self.has_changes = False
        self.has_saved = False
        logger.info("Canvas cleared")
        return True

    def begin_load(self) -> int:
        """Start an async load and return its generation token."""
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def load_template(self, template: Union[SavedTemplate, CanvasGraph]) -> EditResult:
        """Replace the canvas with a saved template under fresh IDs."""
        graph = template.graph if isinstance(template, SavedTemplate) else template
        self.begin_load()
        self._replace(regenerate_ids(graph))
        return EditResult.ok()

    def apply_loaded(self, token: int, graph: CanvasGraph) -> bool:
        """Commit an async load result unless the canvas moved on meanwhile."""
        if not self.is_current(token) or not self._graph.is_empty:
            logger.warning(f"Discarding stale template load (token {token}, current {self._generation})")
            return False
        self._replace(graph)
        return True

    def _replace(self, graph: CanvasGraph) -> None:
        self._graph = graph.snapshot()
        self._initial_positions = {n.id: dict(n.position) for n in self._graph.nodes}
        self.is_loaded_template = True
        self.has_changes = False

    async def load_process_template(
        self,
        client: AdminApiClient,
        process: Dict[str, Any],
        position: Position,
    ) -> EditResult:
        """Fetch a remote process template and expand it onto the empty canvas."""
        if not self._graph.is_empty:
            return EditResult.rejected("Process templates can only be dropped on an empty canvas")

        token = self.begin_load()
        try:
            detail = await client.fetch_process_template(process.get("id"))
            expanded = expand_process_template(process, detail, position, self._config)
        except CanvasError as e:
            logger.warning(f"Process template {process.get('id')} not loaded: {e}")
            return EditResult.rejected(str(e))

        if not self.apply_loaded(token, expanded):
            return EditResult.rejected("The canvas changed while the template was loading")
        return EditResult.ok(len(expanded.nodes))

    def reset_positions(self) -> bool:
        """Move nodes back to where the last load placed them."""
        if not self._initial_positions:
            return False
        for node in self._graph.nodes:
            if node.id in self._initial_positions:
                node.position = dict(self._initial_positions[node.id])
        return True

    # ========================================================================
    # Saving and export
    # ========================================================================

    def execution_order(self) -> List[str]:
        """Linearized task slugs of the current canvas.

        Raises:
            CyclicDependencyError: If the dependencies form a cycle.
        """
        return linearize(self._graph.task_nodes())

    def export(self) -> EditResult:
        try:
            bundle = build_export(
                self._graph, allow_disconnected=self._config.allow_disconnected_tasks,
            )
        except CanvasError as e:
            logger.warning(f"Export blocked: {e}")
            return EditResult.rejected(str(e))
        return EditResult.ok(bundle)

    async def submit(
        self,
        client: AdminApiClient,
        owner_group_ids: Optional[str] = None,
    ) -> EditResult:
        """Export the canvas and submit it to the admin API."""
        result = self.export()
        if not result:
            return result
        bundle: ExportBundle = result.value
        try:
            submission = await client.submit_process_and_task_templates(bundle, owner_group_ids)
        except RemoteApiError as e:
            return EditResult.rejected(str(e))

        self.has_saved = True
        self.has_changes = False
        self.is_loaded_template = False
        return EditResult.ok(submission)

    def save_to_store(self, store: TemplateStore, name: str = "") -> EditResult:
        try:
            template = store.save(self._graph, name=name)
        except CanvasError as e:
            logger.warning(f"Save rejected: {e}")
            return EditResult.rejected(str(e))
        self.has_saved = True
        self.has_changes = False
        return EditResult.ok(template)

    async def save_master_template(self, client: AdminApiClient, node_id: str) -> EditResult:
        """Publish a task or master node as a new master task template."""
        node = self._graph.get_node(node_id)
        if not isinstance(node, (TaskNode, MasterNode)):
            return EditResult.rejected("Only task and master nodes can be saved as templates")
        try:
            created = await client.create_master_task_template(
                build_master_template_request(node.data)
            )
        except RemoteApiError as e:
            return EditResult.rejected(str(e))
        return EditResult.ok(created)

    async def update_master_template(self, client: AdminApiClient, node_id: str) -> EditResult:
        node = self._graph.get_node(node_id)
        if not isinstance(node, (TaskNode, MasterNode)):
            return EditResult.rejected("Only task and master nodes can update templates")
        if node.data.template_id is None:
            return EditResult.rejected("This node is not linked to a master task template")
        try:
            updated = await client.update_master_task_template(
                node.data.template_id,
                build_master_template_request(node.data, for_update=True),
            )
        except RemoteApiError as e:
            return EditResult.rejected(str(e))
        return EditResult.ok(updated)
