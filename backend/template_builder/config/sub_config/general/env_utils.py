"""Helpers for reading config defaults from environment variables."""

from __future__ import annotations

import os
from dataclasses import MISSING, Field
from logging import getLogger
from typing import Any, Callable, Dict

logger = getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _field_default(f: Field) -> Any:
    if f.default is not MISSING:
        return f.default
    if f.default_factory is not MISSING:  # type: ignore[misc]
        return f.default_factory()  # type: ignore[misc]
    return None


def _coerce(raw: str, default: Any) -> Any:
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    return raw


def read_env_defaults(
    env_map: Dict[str, str],
    fields: Dict[str, Field],
) -> Dict[str, Any]:
    """Build constructor kwargs from dataclass defaults overlaid with env values.

    Values that fail to convert keep the dataclass default.
    """
    values: Dict[str, Any] = {}
    for name, f in fields.items():
        if not f.init:
            continue
        default = _field_default(f)
        env_name = env_map.get(name)
        raw = os.environ.get(env_name) if env_name else None
        if raw is None:
            values[name] = default
            continue
        try:
            values[name] = _coerce(raw, default)
        except ValueError:
            logger.warning(f"Ignoring invalid value for {env_name}: {raw!r}")
            values[name] = default
    return values


def env_sync(env_name: str) -> Callable[[Any], None]:
    """Return a change hook that mirrors a field value into ``os.environ``."""

    def _apply(value: Any) -> None:
        if isinstance(value, bool):
            os.environ[env_name] = "true" if value else "false"
        elif value is None:
            os.environ.pop(env_name, None)
        else:
            os.environ[env_name] = str(value)

    return _apply
