"""
Export: turn a canvas into the admin API submission.

    csv_writer     — fixed-column task CSV rendering
    process_export — pre-export validation and ``ExportBundle`` assembly
"""

from template_builder.export.csv_writer import (
    TASK_CSV_COLUMNS,
    TASK_CSV_FILENAME,
    format_csv_value,
    render_task_csv,
)
from template_builder.export.process_export import (
    ExportBundle,
    build_export,
    build_process_template_payload,
    validate_for_export,
)

__all__ = [
    "TASK_CSV_COLUMNS",
    "TASK_CSV_FILENAME",
    "format_csv_value",
    "render_task_csv",
    "ExportBundle",
    "build_export",
    "build_process_template_payload",
    "validate_for_export",
]
