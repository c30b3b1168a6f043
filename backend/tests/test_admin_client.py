"""
Admin API client tests

Requests are answered by ``httpx.MockTransport``; nothing leaves the
process.
"""

import json

import httpx
import pytest

from template_builder.admin_api.client import OPERATOR_HEADER, error_message
from template_builder.admin_api.models import ProcessTemplateDetail
from template_builder.canvas.canvas_errors import RemoteApiError
from template_builder.export.process_export import build_export


class TestRequests:
    @pytest.mark.asyncio
    async def test_operator_header_on_every_request(self, make_client):
        headers = []

        def handler(request: httpx.Request) -> httpx.Response:
            headers.append(request.headers.get(OPERATOR_HEADER))
            return httpx.Response(200, json={})

        async with make_client(handler) as client:
            await client.fetch_process_template(1)
            await client.create_master_task_template({"slug": "a"})
            await client.update_master_task_template(3, {"name": "A"})

        assert headers == ["operator-7", "operator-7", "operator-7"]

    @pytest.mark.asyncio
    async def test_fetch_process_template(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "GET"
            assert request.url.path == "/bb2admin/v2/process-template/42"
            return httpx.Response(200, json={
                "task_templates": [{"id": 1, "slug": "a"}],
                "child_parent_mappings": {"1": [0]},
                "owner": "ops",
            })

        async with make_client(handler) as client:
            detail = await client.fetch_process_template(42)

        assert isinstance(detail, ProcessTemplateDetail)
        assert detail.child_parent_mappings == {"1": [0]}
        assert detail.task_templates[0]["slug"] == "a"

    @pytest.mark.asyncio
    async def test_submit_is_multipart(self, make_client, connected_graph):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["content_type"] = request.headers["content-type"]
            captured["body"] = request.content.decode("utf-8")
            return httpx.Response(200, json={"ok": True})

        bundle = build_export(connected_graph)
        async with make_client(handler) as client:
            result = await client.submit_process_and_task_templates(bundle)

        assert result.status_code == 200
        assert result.body == {"ok": True}
        assert captured["path"] == "/bb2admin/v2/process-and-task-template/"
        assert captured["content_type"].startswith("multipart/form-data")

        body = captured["body"]
        assert 'name="process_template"' in body
        assert json.dumps(bundle.process_template, ensure_ascii=False) in body
        assert 'name="owner_group_id"' in body
        assert "1,2" in body
        assert 'name="task_templates"; filename="task_nodes.csv"' in body
        assert "Content-Type: text/csv" in body
        assert bundle.csv_text in body

    @pytest.mark.asyncio
    async def test_submit_owner_groups_override(self, make_client, connected_graph):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = request.content.decode("utf-8")
            return httpx.Response(200)

        async with make_client(handler) as client:
            result = await client.submit_process_and_task_templates(
                build_export(connected_graph), owner_group_ids="99",
            )

        assert result.body is None
        assert "99" in captured["body"]

    @pytest.mark.asyncio
    async def test_update_master_task_template(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            assert request.url.path == "/bb2admin/v2/master-task-templates/8"
            assert json.loads(request.content) == {"name": "Verify"}
            return httpx.Response(200, json={"id": 8})

        async with make_client(handler) as client:
            assert await client.update_master_task_template(8, {"name": "Verify"}) == {"id": 8}


class TestErrors:
    @pytest.mark.asyncio
    async def test_http_error_becomes_remote_api_error(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, json=[{"slug": "b", "reason": "bad input_format"}])

        async with make_client(handler) as client:
            with pytest.raises(RemoteApiError) as exc_info:
                await client.create_master_task_template({})

        assert exc_info.value.status_code == 422
        assert str(exc_info.value) == "b: bad input_format"

    @pytest.mark.asyncio
    async def test_transport_error_becomes_remote_api_error(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(RemoteApiError) as exc_info:
                await client.fetch_process_template(1)

        assert exc_info.value.status_code is None
        assert "unreachable" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unexpected_body_becomes_remote_api_error(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="OK")

        async with make_client(handler) as client:
            with pytest.raises(RemoteApiError, match="Unexpected response for process template 3"):
                await client.fetch_process_template(3)


class TestErrorMessage:
    @pytest.mark.parametrize("response,expected", [
        (httpx.Response(400, json=[{"slug": "a", "reason": "duplicate"}]), "a: duplicate"),
        (httpx.Response(400, json=[{}]), "Unknown: Unknown error"),
        (httpx.Response(400, json={"message": "Slug taken"}), "Slug taken"),
        (httpx.Response(400, json={"detail": "Not allowed"}), "Not allowed"),
        (httpx.Response(502, text="Bad gateway "), "Bad gateway"),
        (httpx.Response(500), "HTTP 500"),
    ])
    def test_shapes(self, response, expected):
        assert error_message(response) == expected
