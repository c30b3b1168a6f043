"""
Data models for the admin API.

Responses are validated loosely: the admin service returns many fields
the editor does not use, and those pass through untouched.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProcessTemplateDetail(BaseModel):
    """
    Response of ``GET /process-template/{id}``.

    ``child_parent_mappings`` maps a task template ID to the IDs of the
    tasks it depends on; ``0`` stands for the process node itself.
    """
    model_config = ConfigDict(extra="allow")

    task_templates: List[Dict[str, Any]] = Field(default_factory=list)
    child_parent_mappings: Dict[str, List[int]] = Field(default_factory=dict)

    @field_validator("child_parent_mappings", mode="before")
    @classmethod
    def stringify_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): v or [] for k, v in value.items()}
        return value or {}


class ApiErrorItem(BaseModel):
    """One entry of the error list returned on a rejected submission."""
    model_config = ConfigDict(extra="allow")

    slug: Optional[str] = None
    reason: Optional[str] = None


class SubmissionResult(BaseModel):
    """Outcome of a process-and-task template submission."""
    status_code: int
    body: Any = None
