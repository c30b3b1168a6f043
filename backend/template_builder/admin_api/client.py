"""
Admin API Client: async access to the remote template service.

Fetches process templates for expansion, submits finished process and
task templates, and creates or updates master task templates. Every
request carries the operator's ``bb-decoded-uid`` header. Failures are
raised as ``RemoteApiError``; nothing is retried.
"""

from __future__ import annotations

import json
from logging import getLogger
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from template_builder.admin_api.models import (
    ApiErrorItem,
    ProcessTemplateDetail,
    SubmissionResult,
)
from template_builder.canvas.canvas_errors import RemoteApiError
from template_builder.config import AdminApiConfig, get_config
from template_builder.export.process_export import ExportBundle

logger = getLogger(__name__)

OPERATOR_HEADER = "bb-decoded-uid"


class AdminApiClient:
    """Thin async wrapper over ``httpx.AsyncClient``.

    Usage::

        async with AdminApiClient() as client:
            detail = await client.fetch_process_template(42)
    """

    def __init__(
        self,
        config: Optional[AdminApiConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or get_config(AdminApiConfig)
        headers = {}
        if self._config.operator_uid:
            headers[OPERATOR_HEADER] = self._config.operator_uid
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url.rstrip("/"),
            headers=headers,
            timeout=self._config.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "AdminApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Process templates ──

    async def fetch_process_template(self, template_id: Any) -> ProcessTemplateDetail:
        """``GET /process-template/{id}``: task templates and parent mapping."""
        data = await self._request("GET", f"/process-template/{template_id}")
        try:
            return ProcessTemplateDetail.model_validate(data or {})
        except ValidationError as e:
            logger.error(f"Admin API returned a malformed process template {template_id}: {e}")
            raise RemoteApiError(
                f"Unexpected response for process template {template_id}"
            ) from e

    async def submit_process_and_task_templates(
        self,
        bundle: ExportBundle,
        owner_group_ids: Optional[str] = None,
    ) -> SubmissionResult:
        """``POST /process-and-task-template/`` as multipart form data."""
        form = {
            "process_template": json.dumps(bundle.process_template, ensure_ascii=False),
            "owner_group_id": owner_group_ids or self._config.owner_group_ids,
        }
        files = {
            "task_templates": (
                bundle.csv_filename,
                bundle.csv_text.encode("utf-8"),
                "text/csv",
            ),
        }
        response = await self._send(
            "POST", "/process-and-task-template/", data=form, files=files,
        )
        logger.info(
            f"Submitted process template '{bundle.process_template.get('slug')}' "
            f"with {len(bundle.tasks)} tasks"
        )
        return SubmissionResult(status_code=response.status_code, body=_json_or_text(response))

    # ── Master task templates ──

    async def create_master_task_template(self, body: Dict[str, Any]) -> Any:
        """``POST /master-task-templates``."""
        return await self._request("POST", "/master-task-templates", json=body)

    async def update_master_task_template(self, template_id: Any, body: Dict[str, Any]) -> Any:
        """``PUT /master-task-templates/{id}``."""
        return await self._request("PUT", f"/master-task-templates/{template_id}", json=body)

    # ── Internals ──

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._send(method, path, **kwargs)
        return _json_or_text(response)

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = error_message(e.response)
            logger.error(f"Admin API {method} {path} failed ({e.response.status_code}): {message}")
            raise RemoteApiError(message, status_code=e.response.status_code) from e
        except httpx.RequestError as e:
            logger.error(f"Admin API {method} {path} unreachable: {e}")
            raise RemoteApiError(f"Admin API unreachable: {e}") from e
        return response


def _json_or_text(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def error_message(response: httpx.Response) -> str:
    """Extract a user-facing message from an admin API error response.

    The submission endpoint returns ``[{"slug": ..., "reason": ...}]``;
    the template endpoints return ``{"message": ...}``.
    """
    body = _json_or_text(response)
    if isinstance(body, list) and body and isinstance(body[0], dict):
        item = ApiErrorItem.model_validate(body[0])
        return f"{item.slug or 'Unknown'}: {item.reason or 'Unknown error'}"
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            if body.get(key):
                return str(body[key])
    if isinstance(body, str) and body.strip():
        return body.strip()
    return f"HTTP {response.status_code}"
