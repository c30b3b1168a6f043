"""
Configuration package.

Importing this package registers every built-in config section.
"""

from template_builder.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    get_config,
    list_configs,
    register_config,
    reset_configs,
)
from template_builder.config.sub_config.general import AdminApiConfig, EditorConfig

__all__ = [
    "BaseConfig",
    "ConfigField",
    "FieldType",
    "get_config",
    "list_configs",
    "register_config",
    "reset_configs",
    "AdminApiConfig",
    "EditorConfig",
]
