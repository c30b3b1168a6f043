"""General configuration sections."""

from template_builder.config.sub_config.general.admin_api_config import AdminApiConfig
from template_builder.config.sub_config.general.editor_config import EditorConfig

__all__ = ["AdminApiConfig", "EditorConfig"]
