"""
Task template CSV rendering.

The admin service imports task templates from a CSV table with a fixed
column order. The header row is written plain; every data value is
quote-wrapped with embedded quotes doubled.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any, Dict, List, Sequence

from template_builder.canvas.canvas_model import TaskNode, join_slug_list

TASK_CSV_COLUMNS = (
    "name",
    "slug",
    "description",
    "help_text",
    "input_format",
    "output_format",
    "dependent_task_slug",
    "host",
    "bulk_input",
    "input_http_method",
    "api_endpoint",
    "api_timeout_in_ms",
    "response_type",
    "is_json_input_needed",
    "task_type",
    "is_active",
    "is_optional",
    "eta",
    "service_id",
    "email_list",
    "delay_in_ms",
    "master_task_template_slug",
    "action",
)

TASK_CSV_FILENAME = "task_nodes.csv"


def format_csv_value(value: Any) -> str:
    """Render a value as the text placed inside the quotes."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def task_row(node: TaskNode) -> Dict[str, Any]:
    """Map a task node onto the CSV columns."""
    data = node.data
    return {
        "name": data.name,
        "slug": data.slug,
        "description": data.description,
        "help_text": data.help_text,
        "input_format": data.input_format,
        "output_format": data.output_format,
        "dependent_task_slug": join_slug_list(data.dependent_task_slug),
        "host": data.host,
        "bulk_input": data.bulk_input,
        "input_http_method": data.input_http_method,
        "api_endpoint": data.api_endpoint,
        "api_timeout_in_ms": data.api_timeout_in_ms,
        "response_type": data.response_type,
        "is_json_input_needed": data.is_json_input_needed,
        "task_type": data.task_type,
        "is_active": data.is_active,
        "is_optional": data.is_optional,
        "eta": data.eta,
        "service_id": data.service_id,
        "email_list": data.email_list,
        "delay_in_ms": data.delay_in_ms or 0,
        "master_task_template_slug": data.master_task_slug,
        "action": data.action,
    }


def render_task_csv(tasks: Sequence[TaskNode]) -> str:
    """Render ordered task nodes as CSV text (no trailing newline)."""
    buffer = io.StringIO()
    buffer.write(",".join(TASK_CSV_COLUMNS) + "\n")

    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    rows: List[List[str]] = []
    for node in tasks:
        row = task_row(node)
        rows.append([format_csv_value(row[column]) for column in TASK_CSV_COLUMNS])
    writer.writerows(rows)

    return buffer.getvalue()[:-1]
