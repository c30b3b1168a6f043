"""
Canvas Data Models: node variants, edges, and the graph itself.

These are the serializable structures behind the template editor.
Nodes are a tagged union on ``type`` (``process`` / ``task`` /
``master``), each with its own typed ``data`` model. They are
persisted by ``TemplateStore`` and exported by ``build_export``.
"""

from __future__ import annotations

import json
import time
import uuid
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)

PROCESS = "process"
TASK = "task"
MASTER = "master"
NODE_TYPES = (PROCESS, TASK, MASTER)


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_node_id(node_type: str) -> str:
    """Generate a canvas node ID such as ``task-1718000000000-1a2b3c4d``."""
    return f"{node_type}-{_now_ms()}-{uuid.uuid4().hex[:8]}"


def new_edge_id() -> str:
    return f"edge-{_now_ms()}-{uuid.uuid4().hex[:8]}"


def new_state_id() -> str:
    return f"state-{_now_ms()}-{uuid.uuid4().hex[:8]}"


# ============================================================================
# Field helpers
# ============================================================================


def parse_slug_list(value: Any) -> List[str]:
    """Parse a comma-joined string or an iterable into an ordered slug set.

    Entries are trimmed, empty entries dropped, duplicates removed
    (first occurrence wins).
    """
    if value is None:
        return []
    items: Iterable[Any] = value.split(",") if isinstance(value, str) else value
    slugs: List[str] = []
    for item in items:
        if item is None:
            continue
        slug = str(item).strip()
        if slug and slug not in slugs:
            slugs.append(slug)
    return slugs


def join_slug_list(slugs: Iterable[str]) -> str:
    return ",".join(slugs)


def _json_object(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return {}
    if isinstance(value, str):
        return json.loads(value)
    return value


def _text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return value


def _optional_int(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return value


# ============================================================================
# Node data variants
# ============================================================================


class ProcessNodeData(BaseModel):
    """Data of the single process (entry) node."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    slug: str = Field(default="", validation_alias=AliasChoices("slug", "process_slug"))
    description: str = ""
    input_format: Dict[str, Any] = Field(default_factory=dict)
    header: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("header", "http_headers")
    )
    email_list: str = Field(default="", validation_alias=AliasChoices("email_list", "email_id"))
    template_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("template_id", "id"))
    label: str = "Process"
    state_id: str = Field(default_factory=new_state_id)

    @field_validator("input_format", "header", mode="before")
    @classmethod
    def parse_json_fields(cls, value: Any) -> Any:
        return _json_object(value)

    @field_validator("name", "slug", "description", "email_list", "label", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text(value)

    @field_validator("template_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        return _optional_int(value)


class TaskTemplateFields(BaseModel):
    """Fields shared by task nodes and master (task template) nodes."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    slug: str = ""
    description: str = ""
    help_text: str = ""
    input_format: Dict[str, Any] = Field(default_factory=dict)
    output_format: Dict[str, Any] = Field(default_factory=dict)
    eta: Dict[str, Any] = Field(default_factory=dict)
    host: str = ""
    bulk_input: bool = False
    input_http_method: Optional[int] = None
    api_endpoint: str = ""
    api_timeout_in_ms: int = 30000
    response_type: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("response_type", "responseType")
    )
    is_json_input_needed: bool = False
    task_type: Optional[int] = None
    is_active: bool = True
    is_optional: bool = False
    service_id: Optional[int] = None
    email_list: str = ""
    action: str = ""
    repeats_on: str = ""
    template_id: Optional[int] = Field(default=None, validation_alias=AliasChoices("template_id", "id"))
    label: str = ""
    state_id: str = Field(default_factory=new_state_id)

    @field_validator("input_format", "output_format", "eta", mode="before")
    @classmethod
    def parse_json_fields(cls, value: Any) -> Any:
        return _json_object(value)

    @field_validator(
        "name", "slug", "description", "help_text", "host", "api_endpoint",
        "email_list", "action", "repeats_on", "label",
        mode="before",
    )
    @classmethod
    def coerce_text(cls, value: Any) -> Any:
        return _text(value)

    @field_validator(
        "input_http_method", "response_type", "task_type", "service_id", "template_id",
        mode="before",
    )
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        return _optional_int(value)

    @field_validator("api_timeout_in_ms", mode="before")
    @classmethod
    def default_timeout(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 30000
        return value


class TaskNodeData(TaskTemplateFields):
    """Data of a task node. ``dependent_task_slug`` is an ordered slug set."""

    dependent_task_slug: List[str] = Field(default_factory=list)
    master_task_slug: str = Field(
        default="",
        validation_alias=AliasChoices("master_task_slug", "master_task_template_slug"),
    )
    delay_in_ms: int = 0

    @field_validator("dependent_task_slug", mode="before")
    @classmethod
    def parse_dependencies(cls, value: Any) -> List[str]:
        return parse_slug_list(value)

    @field_validator("master_task_slug", mode="before")
    @classmethod
    def coerce_master_slug(cls, value: Any) -> Any:
        return _text(value)

    @field_validator("delay_in_ms", mode="before")
    @classmethod
    def default_delay(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return 0
        return value

    @property
    def dependency_text(self) -> str:
        return join_slug_list(self.dependent_task_slug)


class MasterNodeData(TaskTemplateFields):
    """Data of a master node: a reusable task template dropped on the canvas."""

    master_task_slug: str = ""

    @model_validator(mode="after")
    def default_master_slug(self) -> "MasterNodeData":
        if not self.master_task_slug:
            self.master_task_slug = self.slug
        return self


# ============================================================================
# Nodes and edges
# ============================================================================


class _CanvasNodeBase(BaseModel):
    id: str = ""
    position: Dict[str, float] = Field(default_factory=lambda: {"x": 0, "y": 0})

    @model_validator(mode="after")
    def assign_node_id(self):
        if not self.id:
            self.id = new_node_id(self.type)  # type: ignore[attr-defined]
        return self

    @property
    def slug(self) -> str:
        return self.data.slug  # type: ignore[attr-defined]


class ProcessNode(_CanvasNodeBase):
    type: Literal["process"] = PROCESS
    data: ProcessNodeData = Field(default_factory=ProcessNodeData)


class TaskNode(_CanvasNodeBase):
    type: Literal["task"] = TASK
    data: TaskNodeData = Field(default_factory=TaskNodeData)


class MasterNode(_CanvasNodeBase):
    type: Literal["master"] = MASTER
    data: MasterNodeData = Field(default_factory=MasterNodeData)


CanvasNode = Annotated[
    Union[ProcessNode, TaskNode, MasterNode], Field(discriminator="type")
]

_node_adapter: TypeAdapter = TypeAdapter(CanvasNode)


def parse_node(raw: Dict[str, Any]) -> Union[ProcessNode, TaskNode, MasterNode]:
    """Validate a raw node dict into the matching node variant."""
    return _node_adapter.validate_python(raw)


class CanvasEdge(BaseModel):
    """A directed edge between two node IDs."""

    id: str = Field(default_factory=new_edge_id)
    source: str
    target: str


# ============================================================================
# Graph
# ============================================================================


class CanvasGraph(BaseModel):
    """The full node and edge set currently on the canvas."""

    nodes: List[CanvasNode] = Field(default_factory=list)
    edges: List[CanvasEdge] = Field(default_factory=list)
    viewport: Optional[Dict[str, float]] = None

    def snapshot(self) -> "CanvasGraph":
        """Return a deep copy that later edits cannot reach."""
        return self.model_copy(deep=True)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def get_node(self, node_id: str) -> Optional[Union[ProcessNode, TaskNode, MasterNode]]:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def get_edge(self, edge_id: str) -> Optional[CanvasEdge]:
        for e in self.edges:
            if e.id == edge_id:
                return e
        return None

    def get_edges_from(self, node_id: str) -> List[CanvasEdge]:
        return [e for e in self.edges if e.source == node_id]

    def get_edges_to(self, node_id: str) -> List[CanvasEdge]:
        return [e for e in self.edges if e.target == node_id]

    def process_node(self) -> Optional[ProcessNode]:
        for n in self.nodes:
            if isinstance(n, ProcessNode):
                return n
        return None

    def task_nodes(self) -> List[TaskNode]:
        return [n for n in self.nodes if isinstance(n, TaskNode)]

    def master_nodes(self) -> List[MasterNode]:
        return [n for n in self.nodes if isinstance(n, MasterNode)]

    def find_task_by_slug(self, slug: str) -> Optional[TaskNode]:
        for n in self.task_nodes():
            if n.data.slug == slug:
                return n
        return None

    def has_entry_edge(self, node_id: str) -> bool:
        """True if the node has an incoming edge from the process node."""
        for e in self.get_edges_to(node_id):
            src = self.get_node(e.source)
            if isinstance(src, ProcessNode):
                return True
        return False

    def expected_dependencies(self, node_id: str) -> List[str]:
        """Slugs of task-node predecessors, in edge order."""
        slugs: List[str] = []
        for e in self.get_edges_to(node_id):
            src = self.get_node(e.source)
            if isinstance(src, TaskNode) and src.data.slug and src.data.slug not in slugs:
                slugs.append(src.data.slug)
        return slugs

    def disconnected_task_ids(self) -> List[str]:
        touched = {e.source for e in self.edges} | {e.target for e in self.edges}
        return [n.id for n in self.task_nodes() if n.id not in touched]

    def validate_graph(self) -> List[str]:
        """Validate the canvas structure.

        Returns a list of error messages (empty = valid).
        """
        errors: List[str] = []

        process_nodes = [n for n in self.nodes if isinstance(n, ProcessNode)]
        if not process_nodes:
            errors.append("Template must have a process node.")
        elif len(process_nodes) > 1:
            errors.append("Template must have exactly one process node (found multiple).")

        if self.master_nodes():
            errors.append("Master nodes must be converted to tasks or removed.")

        node_ids = {n.id for n in self.nodes}
        for edge in self.edges:
            if edge.source not in node_ids:
                errors.append(f"Edge references unknown source node: {edge.source}")
            if edge.target not in node_ids:
                errors.append(f"Edge references unknown target node: {edge.target}")

        for node_id in self.disconnected_task_ids():
            node = self.get_node(node_id)
            errors.append(
                f"Task '{node.data.slug or node.data.name or node_id}' ({node_id}) "
                f"is disconnected (no edges)."
            )

        seen: Dict[str, int] = {}
        for task in self.task_nodes():
            if not task.data.slug:
                errors.append(f"Task node {task.id} has no slug.")
                continue
            seen[task.data.slug] = seen.get(task.data.slug, 0) + 1
        for slug, count in seen.items():
            if count > 1:
                errors.append(f"Task slug '{slug}' is used by {count} nodes.")

        for task in self.task_nodes():
            if set(task.data.dependent_task_slug) != set(self.expected_dependencies(task.id)):
                errors.append(
                    f"Task '{task.data.slug}' dependency list is out of sync with its edges."
                )

        return errors
