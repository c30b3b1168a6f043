"""
Admin API Configuration.

Controls where process and task templates are fetched from and
submitted to, and the operator identity sent with each request.
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
from template_builder.config.sub_config.general.env_utils import env_sync

DEFAULT_BASE_URL = "http://localhost:8011/bb2admin/v2"
DEFAULT_OWNER_GROUP_IDS = "518,626,767,967,969"


@register_config
@dataclass
class AdminApiConfig(BaseConfig):
    """Remote admin API settings."""

    base_url: str = DEFAULT_BASE_URL
    operator_uid: str = ""
    owner_group_ids: str = DEFAULT_OWNER_GROUP_IDS
    timeout_seconds: float = 30.0

    _ENV_MAP = {
        "base_url": "ADMIN_API_BASE_URL",
        "operator_uid": "BB_DECODED_UID",
        "owner_group_ids": "ADMIN_OWNER_GROUP_IDS",
        "timeout_seconds": "ADMIN_API_TIMEOUT",
    }

    @classmethod
    def get_config_name(cls) -> str:
        return "admin_api"

    @classmethod
    def get_display_name(cls) -> str:
        return "Admin API"

    @classmethod
    def get_description(cls) -> str:
        return "Admin service endpoint, operator identity, and owner groups for submitted templates."

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="base_url",
                field_type=FieldType.STRING,
                label="Base URL",
                description="Root URL of the admin v2 API",
                required=True,
                default=DEFAULT_BASE_URL,
                placeholder="http://localhost:8011/bb2admin/v2",
                group="api",
                apply_change=env_sync("ADMIN_API_BASE_URL"),
            ),
            ConfigField(
                name="operator_uid",
                field_type=FieldType.PASSWORD,
                label="Operator UID",
                description="Sent as the bb-decoded-uid header on every request",
                group="auth",
                secure=True,
                apply_change=env_sync("BB_DECODED_UID"),
            ),
            ConfigField(
                name="owner_group_ids",
                field_type=FieldType.STRING,
                label="Owner Group IDs",
                description="Comma-separated group IDs that own submitted templates",
                default=DEFAULT_OWNER_GROUP_IDS,
                group="api",
                apply_change=env_sync("ADMIN_OWNER_GROUP_IDS"),
            ),
            ConfigField(
                name="timeout_seconds",
                field_type=FieldType.NUMBER,
                label="Request Timeout (s)",
                description="Timeout applied to every admin API request",
                default=30.0,
                min_value=1,
                max_value=600,
                group="api",
                apply_change=env_sync("ADMIN_API_TIMEOUT"),
            ),
        ]
