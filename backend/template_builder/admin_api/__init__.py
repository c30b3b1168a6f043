"""
Admin API integration.

    models — response models for the remote template service
    client — async ``AdminApiClient`` built on httpx
"""

from template_builder.admin_api.client import AdminApiClient, error_message
from template_builder.admin_api.models import (
    ApiErrorItem,
    ProcessTemplateDetail,
    SubmissionResult,
)

__all__ = [
    "AdminApiClient",
    "error_message",
    "ApiErrorItem",
    "ProcessTemplateDetail",
    "SubmissionResult",
]
