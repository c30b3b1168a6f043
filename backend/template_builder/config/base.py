"""
Configuration base classes.

Every configuration section is a dataclass deriving from ``BaseConfig``
and decorated with ``@register_config``. Defaults are read from the
environment through the class-level ``_ENV_MAP``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from logging import getLogger
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = getLogger(__name__)

C = TypeVar("C", bound="BaseConfig")


class FieldType(str, Enum):
    """Editor widget used to present a config field."""
    STRING = "string"
    PASSWORD = "password"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    PATH = "path"


@dataclass
class ConfigField:
    """Metadata describing a single config field."""
    name: str
    field_type: FieldType
    label: str
    description: str = ""
    required: bool = False
    default: Any = None
    placeholder: str = ""
    options: List[Dict[str, Any]] = field(default_factory=list)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    group: str = "general"
    secure: bool = False
    apply_change: Optional[Callable[[Any], None]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.field_type.value,
            "label": self.label,
            "description": self.description,
            "required": self.required,
            "default": self.default,
            "placeholder": self.placeholder,
            "options": self.options,
            "min": self.min_value,
            "max": self.max_value,
            "group": self.group,
            "secure": self.secure,
        }


@dataclass
class BaseConfig:
    """Base class for configuration sections."""

    _ENV_MAP = {}

    @classmethod
    def get_default_instance(cls: Type[C]) -> C:
        from template_builder.config.sub_config.general.env_utils import (
            read_env_defaults,
        )

        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_display_name(cls) -> str:
        return cls.get_config_name()

    @classmethod
    def get_description(cls) -> str:
        return ""

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return []

    def to_dict(self, mask_secure: bool = True) -> Dict[str, Any]:
        """Serialize values, masking secure fields."""
        values = asdict(self)
        if mask_secure:
            for meta in self.get_fields_metadata():
                if meta.secure and values.get(meta.name):
                    values[meta.name] = "********"
        return values

    def validate(self) -> List[str]:
        """Return a list of validation errors (empty = valid)."""
        errors: List[str] = []
        for meta in self.get_fields_metadata():
            value = getattr(self, meta.name, None)
            if meta.required and value in (None, ""):
                errors.append(f"{meta.label} is required.")
            if meta.field_type == FieldType.NUMBER and value is not None:
                if meta.min_value is not None and value < meta.min_value:
                    errors.append(f"{meta.label} must be >= {meta.min_value}.")
                if meta.max_value is not None and value > meta.max_value:
                    errors.append(f"{meta.label} must be <= {meta.max_value}.")
        return errors


# ── Registry ──

_registry: Dict[str, Type[BaseConfig]] = {}
_instances: Dict[str, BaseConfig] = {}


def register_config(cls: Type[C]) -> Type[C]:
    """Class decorator adding a config section to the registry."""
    _registry[cls.get_config_name()] = cls
    return cls


def list_configs() -> List[Type[BaseConfig]]:
    return list(_registry.values())


def get_config(cls: Type[C]) -> C:
    """Return the cached instance of a registered config section."""
    name = cls.get_config_name()
    instance = _instances.get(name)
    if instance is None:
        instance = cls.get_default_instance()
        _instances[name] = instance
        logger.debug(f"Config loaded: {name}")
    return instance  # type: ignore[return-value]


def reset_configs() -> None:
    """Drop cached instances so the next lookup re-reads the environment."""
    _instances.clear()
