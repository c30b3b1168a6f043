"""
Editor Configuration.

Layout constants for expanded process templates and the validation
rules applied while editing and exporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from template_builder.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    register_config,
)


@register_config
@dataclass
class EditorConfig(BaseConfig):
    """Canvas layout and validation settings."""

    grid_spacing: int = 300
    max_nodes_per_row: int = 5
    task_row_offset: int = 300
    reject_cycles_on_connect: bool = False
    allow_disconnected_tasks: bool = False
    template_dir: str = ""

    _ENV_MAP = {
        "reject_cycles_on_connect": "EDITOR_REJECT_CYCLES",
        "allow_disconnected_tasks": "EDITOR_ALLOW_DISCONNECTED",
        "template_dir": "TEMPLATE_DIR",
    }

    @classmethod
    def get_config_name(cls) -> str:
        return "editor"

    @classmethod
    def get_display_name(cls) -> str:
        return "Editor"

    @classmethod
    def get_description(cls) -> str:
        return "Template expansion layout and graph validation rules."

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="grid_spacing",
                field_type=FieldType.NUMBER,
                label="Grid Spacing",
                description="Distance between expanded task nodes",
                default=300,
                min_value=50,
                max_value=2000,
                group="layout",
            ),
            ConfigField(
                name="max_nodes_per_row",
                field_type=FieldType.NUMBER,
                label="Nodes Per Row",
                default=5,
                min_value=1,
                max_value=50,
                group="layout",
            ),
            ConfigField(
                name="task_row_offset",
                field_type=FieldType.NUMBER,
                label="Task Row Offset",
                description="Vertical gap between the process node and the first task row",
                default=300,
                min_value=0,
                max_value=5000,
                group="layout",
            ),
            ConfigField(
                name="reject_cycles_on_connect",
                field_type=FieldType.BOOLEAN,
                label="Reject Cycles On Connect",
                description="Refuse task connections that would close a dependency cycle",
                default=False,
                group="validation",
            ),
            ConfigField(
                name="allow_disconnected_tasks",
                field_type=FieldType.BOOLEAN,
                label="Allow Disconnected Tasks",
                description="Export task nodes that have no incident edges",
                default=False,
                group="validation",
            ),
            ConfigField(
                name="template_dir",
                field_type=FieldType.PATH,
                label="Template Directory",
                description="Where saved canvas and task templates are stored",
                group="storage",
            ),
        ]
