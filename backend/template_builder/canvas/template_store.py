"""
Template Store: JSON-file persistence for saved templates.

Canvas templates live under ``<dir>/canvas`` and reusable task
templates under ``<dir>/tasks``, one JSON file per template.
"""

from __future__ import annotations

import json
import time
import uuid
from datetime import datetime, timezone
from logging import getLogger
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from template_builder.canvas.canvas_errors import EmptyTemplate
from template_builder.canvas.canvas_model import CanvasGraph, TaskNodeData
from template_builder.canvas.templates import regenerate_ids
from template_builder.config import EditorConfig, get_config

logger = getLogger(__name__)

_DEFAULT_DIR = Path.home() / ".template_builder" / "templates"


def _template_id(prefix: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TemplateMetadata(BaseModel):
    node_count: int = 0
    edge_count: int = 0
    created_at: str = Field(default_factory=_utc_now)


class SavedTemplate(BaseModel):
    """A canvas saved for later reuse."""

    id: str = Field(default_factory=lambda: _template_id("template"))
    name: str = ""
    graph: CanvasGraph = Field(default_factory=CanvasGraph)
    metadata: TemplateMetadata = Field(default_factory=TemplateMetadata)

    @property
    def process_slug(self) -> str:
        process = self.graph.process_node()
        return process.data.slug if process else ""


class SavedTaskTemplate(BaseModel):
    """A task node's data saved to the task template library."""

    id: str = Field(default_factory=lambda: _template_id("task"))
    data: TaskNodeData = Field(default_factory=TaskNodeData)
    timestamp: str = Field(default_factory=_utc_now)

    @property
    def label(self) -> str:
        return self.data.label or self.data.name or self.data.slug


class TemplateStore:
    """Persist and load saved templates as JSON files."""

    def __init__(self, storage_dir: Optional[Path] = None) -> None:
        if storage_dir is None:
            configured = get_config(EditorConfig).template_dir
            storage_dir = Path(configured) if configured else _DEFAULT_DIR
        self._dir = Path(storage_dir)
        self._canvas_dir = self._dir / "canvas"
        self._task_dir = self._dir / "tasks"
        self._canvas_dir.mkdir(parents=True, exist_ok=True)
        self._task_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"TemplateStore initialized at {self._dir}")

    # ── Canvas templates ──

    def save(self, graph: CanvasGraph, name: str = "") -> SavedTemplate:
        """Save a canvas with fresh IDs. Empty canvases are refused."""
        if graph.is_empty:
            raise EmptyTemplate()

        fresh = regenerate_ids(graph)
        template = SavedTemplate(
            name=name,
            graph=fresh,
            metadata=TemplateMetadata(
                node_count=len(graph.nodes),
                edge_count=len(graph.edges),
            ),
        )
        _write(self._path_for(self._canvas_dir, template.id), template)
        logger.info(f"Template saved: {template.name or template.process_slug} ({template.id})")
        return template

    def load(self, template_id: str) -> Optional[SavedTemplate]:
        return _read(self._path_for(self._canvas_dir, template_id), SavedTemplate)

    def delete(self, template_id: str) -> bool:
        return _delete(self._path_for(self._canvas_dir, template_id))

    def list_all(self) -> List[SavedTemplate]:
        return _read_all(self._canvas_dir, SavedTemplate)

    def exists(self, template_id: str) -> bool:
        return self._path_for(self._canvas_dir, template_id).exists()

    # ── Task templates ──

    def save_task_template(
        self,
        data: TaskNodeData,
        template_id: Optional[str] = None,
    ) -> SavedTaskTemplate:
        """Create or, with ``template_id``, replace a task template."""
        stored = data.model_copy(update={"dependent_task_slug": []}, deep=True)
        template = SavedTaskTemplate(data=stored)
        if template_id:
            template.id = template_id
        _write(self._path_for(self._task_dir, template.id), template)
        logger.info(f"Task template saved: {template.label} ({template.id})")
        return template

    def load_task_template(self, template_id: str) -> Optional[SavedTaskTemplate]:
        return _read(self._path_for(self._task_dir, template_id), SavedTaskTemplate)

    def delete_task_template(self, template_id: str) -> bool:
        return _delete(self._path_for(self._task_dir, template_id))

    def list_task_templates(self) -> List[SavedTaskTemplate]:
        return _read_all(self._task_dir, SavedTaskTemplate)

    # ── Internals ──

    @staticmethod
    def _path_for(directory: Path, template_id: str) -> Path:
        # Sanitize ID for filesystem
        safe_id = "".join(c for c in template_id if c.isalnum() or c in "-_")
        return directory / f"{safe_id}.json"


def _write(path: Path, model: BaseModel) -> None:
    path.write_text(model.model_dump_json(indent=2), encoding="utf-8")


def _read(path: Path, model_cls) -> Optional[Any]:
    if not path.exists():
        return None
    try:
        data: Dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
        return model_cls.model_validate(data)
    except Exception as e:
        logger.error(f"Failed to load template {path.name}: {e}")
        return None


def _read_all(directory: Path, model_cls) -> List[Any]:
    items: List[Any] = []
    for path in sorted(directory.glob("*.json")):
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            items.append(model_cls.model_validate(data))
        except Exception as e:
            logger.warning(f"Skipping malformed template file {path.name}: {e}")
    return items


def _delete(path: Path) -> bool:
    if path.exists():
        path.unlink()
        logger.info(f"Template deleted: {path.stem}")
        return True
    return False


# ── Singleton ──

_store_instance: Optional[TemplateStore] = None


def get_template_store() -> TemplateStore:
    """Return the global TemplateStore singleton."""
    global _store_instance
    if _store_instance is None:
        _store_instance = TemplateStore()
    return _store_instance
