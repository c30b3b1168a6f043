"""
Node form handling.

Forms submit JSON-valued fields as raw text. These helpers parse and
validate a submission before it reaches the canvas, and build the
payloads the admin API expects for master task templates.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from pydantic import ValidationError

from template_builder.canvas.canvas_errors import CanvasError, MalformedJsonField
from template_builder.canvas.canvas_model import (
    ProcessNodeData,
    TaskNodeData,
    TaskTemplateFields,
)

PROCESS_JSON_FIELDS = ("input_format", "header")
TASK_JSON_FIELDS = ("input_format", "output_format", "eta")
_JSON_FIELD_KEYS = set(PROCESS_JSON_FIELDS) | set(TASK_JSON_FIELDS) | {"http_headers"}


def parse_json_field(value: Any, field: str) -> Any:
    """Parse JSON text from a form field. Non-string values pass through.

    Raises:
        MalformedJsonField: If the text is not valid JSON.
    """
    if not isinstance(value, str):
        return {} if value is None else value
    if not value.strip():
        return {}
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise MalformedJsonField(field, e.msg) from e


def _parse_json_fields(form: Dict[str, Any], fields) -> Dict[str, Any]:
    parsed = dict(form)
    for name in fields:
        if name in parsed:
            parsed[name] = parse_json_field(parsed[name], name)
    return parsed


def validate_node_data(model, values: Dict[str, Any]):
    """Validate node data, turning pydantic errors into canvas errors.

    Raises:
        MalformedJsonField: If a JSON field holds text that does not parse.
        CanvasError: For any other invalid value.
    """
    try:
        return model.model_validate(values)
    except ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc", ())
        location = ".".join(str(p) for p in loc)
        if loc and loc[0] in _JSON_FIELD_KEYS:
            raise MalformedJsonField(str(loc[0]), first.get("msg", "")) from e
        raise CanvasError(f"Invalid value for '{location}': {first.get('msg')}") from e


def submit_process_form(form: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a process form and return the data to merge into the node."""
    parsed = _parse_json_fields(form, PROCESS_JSON_FIELDS)
    data = validate_node_data(ProcessNodeData, parsed)
    return data.model_dump(include=set(ProcessNodeData.model_fields) & _keys(parsed))


def submit_task_form(form: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a task (or master) form and return the data to merge.

    ``responseType`` is accepted as an alias of ``response_type``.
    ``label`` follows ``name`` when the form does not set one.
    """
    parsed = _parse_json_fields(form, TASK_JSON_FIELDS)
    if "responseType" in parsed and "response_type" not in parsed:
        parsed["response_type"] = parsed.pop("responseType")
    data = validate_node_data(TaskNodeData, parsed)
    keys = _keys(parsed)
    if "name" in keys and "label" not in keys:
        data.label = data.name
        keys.add("label")
    keys.discard("dependent_task_slug")
    return data.model_dump(include=set(TaskNodeData.model_fields) & keys)


def _keys(parsed: Dict[str, Any]) -> set:
    aliases = {
        "process_slug": "slug",
        "http_headers": "header",
        "email_id": "email_list",
        "id": "template_id",
        "responseType": "response_type",
        "master_task_template_slug": "master_task_slug",
    }
    return {aliases.get(k, k) for k in parsed}


# ============================================================================
# Master task template payloads
# ============================================================================


def _int_or_none(value: Optional[int]) -> Optional[int]:
    return None if value is None else int(value)


def build_master_template_request(
    data: TaskTemplateFields,
    for_update: bool = False,
) -> Dict[str, Any]:
    """Build the admin API body for creating or updating a master task template.

    Updates leave ``slug``, ``dependent_task_slug`` and ``bulk_input`` out;
    they are fixed once the template exists.
    """
    body: Dict[str, Any] = {
        "name": data.name,
        "description": data.description,
        "help_text": data.help_text,
        "input_format": data.input_format,
        "output_format": data.output_format,
        "host": data.host or "",
        "input_http_method": _int_or_none(data.input_http_method),
        "api_endpoint": data.api_endpoint,
        "api_timeout_in_ms": int(data.api_timeout_in_ms),
        "responseType": _int_or_none(data.response_type),
        "is_json_input_needed": data.is_json_input_needed,
        "task_type": _int_or_none(data.task_type),
        "is_active": data.is_active,
        "is_optional": data.is_optional,
        "eta": data.eta,
        "service_id": _int_or_none(data.service_id),
        "email_list": data.email_list,
    }
    if not for_update:
        body["slug"] = data.slug
        deps = getattr(data, "dependent_task_slug", [])
        body["dependent_task_slug"] = list(deps)
        body["bulk_input"] = bool(data.bulk_input)
    return body
