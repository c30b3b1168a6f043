"""
Pytest Configuration

Shared fixtures: isolated config, canvas builders, and a temporary
template store.
"""

from typing import Iterable, Optional

import httpx
import pytest

from template_builder.admin_api.client import AdminApiClient
from template_builder.canvas.canvas_model import (
    CanvasEdge,
    CanvasGraph,
    MasterNode,
    MasterNodeData,
    ProcessNode,
    ProcessNodeData,
    TaskNode,
    TaskNodeData,
)
from template_builder.canvas.template_store import TemplateStore
from template_builder.config import AdminApiConfig, EditorConfig, reset_configs

_ENV_VARS = (
    "ADMIN_API_BASE_URL",
    "BB_DECODED_UID",
    "ADMIN_OWNER_GROUP_IDS",
    "ADMIN_API_TIMEOUT",
    "EDITOR_REJECT_CYCLES",
    "EDITOR_ALLOW_DISCONNECTED",
    "TEMPLATE_DIR",
)


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Clear config env vars and cached config instances around each test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_configs()
    yield
    reset_configs()


@pytest.fixture
def editor_config() -> EditorConfig:
    return EditorConfig()


@pytest.fixture
def make_process():
    def _make(slug: str = "onboarding", node_id: str = "process-1", **data) -> ProcessNode:
        return ProcessNode(
            id=node_id,
            data=ProcessNodeData(name=data.pop("name", "Onboarding"), slug=slug, **data),
        )

    return _make


@pytest.fixture
def make_task():
    def _make(
        slug: str,
        deps: Iterable[str] = (),
        node_id: Optional[str] = None,
        **data,
    ) -> TaskNode:
        return TaskNode(
            id=node_id or f"task-{slug}",
            data=TaskNodeData(
                name=data.pop("name", slug.title()),
                slug=slug,
                dependent_task_slug=list(deps),
                **data,
            ),
        )

    return _make


@pytest.fixture
def make_master():
    def _make(slug: str = "kyc", node_id: str = "master-1") -> MasterNode:
        return MasterNode(id=node_id, data=MasterNodeData(name="KYC", slug=slug))

    return _make


@pytest.fixture
def connected_graph(make_process, make_task) -> CanvasGraph:
    """process → a → b, a → c, b → c (edges and dependency lists in sync)."""
    return CanvasGraph(
        nodes=[
            make_process(),
            make_task("a"),
            make_task("b", deps=["a"]),
            make_task("c", deps=["a", "b"]),
        ],
        edges=[
            CanvasEdge(id="e-p-a", source="process-1", target="task-a"),
            CanvasEdge(id="e-a-b", source="task-a", target="task-b"),
            CanvasEdge(id="e-a-c", source="task-a", target="task-c"),
            CanvasEdge(id="e-b-c", source="task-b", target="task-c"),
        ],
    )


@pytest.fixture
def template_store(tmp_path) -> TemplateStore:
    return TemplateStore(storage_dir=tmp_path / "templates")


@pytest.fixture
def admin_config() -> AdminApiConfig:
    return AdminApiConfig(
        base_url="http://admin.test/bb2admin/v2",
        operator_uid="operator-7",
        owner_group_ids="1,2",
    )


@pytest.fixture
def make_client(admin_config):
    """Build an AdminApiClient whose requests are answered by ``handler``."""

    def _make(handler) -> AdminApiClient:
        return AdminApiClient(config=admin_config, transport=httpx.MockTransport(handler))

    return _make
