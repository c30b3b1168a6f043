"""
Node form tests

Form submissions with raw JSON text, and master task template payloads.
"""

import pytest

from template_builder.canvas.canvas_errors import CanvasError, MalformedJsonField
from template_builder.canvas.canvas_model import MasterNodeData, TaskNodeData
from template_builder.canvas.node_forms import (
    build_master_template_request,
    parse_json_field,
    submit_process_form,
    submit_task_form,
    validate_node_data,
)


class TestParseJsonField:
    def test_text_is_parsed(self):
        assert parse_json_field('{"a": [1, 2]}', "input_format") == {"a": [1, 2]}

    def test_blank_and_none_become_empty_object(self):
        assert parse_json_field("  ", "eta") == {}
        assert parse_json_field(None, "eta") == {}

    def test_parsed_values_pass_through(self):
        assert parse_json_field({"a": 1}, "eta") == {"a": 1}

    def test_malformed_text_names_the_field(self):
        with pytest.raises(MalformedJsonField) as exc_info:
            parse_json_field("{bad", "output_format")

        assert exc_info.value.field == "output_format"
        assert "output_format" in str(exc_info.value)


class TestSubmitProcessForm:
    def test_only_submitted_fields_are_returned(self):
        data = submit_process_form({"name": "Flow", "header": '{"x": "1"}'})
        assert data == {"name": "Flow", "header": {"x": "1"}}

    def test_aliases_map_to_field_names(self):
        data = submit_process_form({"process_slug": "flow", "email_id": "ops@example.com"})
        assert data == {"slug": "flow", "email_list": "ops@example.com"}

    def test_malformed_header(self):
        with pytest.raises(MalformedJsonField):
            submit_process_form({"header": "not json"})


class TestSubmitTaskForm:
    def test_label_follows_name(self):
        data = submit_task_form({"name": "Verify", "slug": "verify"})
        assert data == {"name": "Verify", "slug": "verify", "label": "Verify"}

    def test_response_type_alias(self):
        assert submit_task_form({"responseType": "2"}) == {"response_type": 2}

    def test_json_fields(self):
        data = submit_task_form({"input_format": '{"a": 1}', "output_format": "", "eta": "{}"})
        assert data == {"input_format": {"a": 1}, "output_format": {}, "eta": {}}

    def test_dependencies_are_never_taken_from_the_form(self):
        assert "dependent_task_slug" not in submit_task_form({"dependent_task_slug": "a,b"})

    def test_invalid_value_is_reported(self):
        with pytest.raises(CanvasError, match="api_timeout_in_ms"):
            submit_task_form({"api_timeout_in_ms": "soon"})

    def test_malformed_eta(self):
        with pytest.raises(MalformedJsonField) as exc_info:
            submit_task_form({"eta": "{"})
        assert exc_info.value.field == "eta"


class TestValidateNodeData:
    def test_valid_data(self):
        data = validate_node_data(TaskNodeData, {"slug": "a", "eta": '{"days": 1}'})
        assert data.eta == {"days": 1}

    def test_malformed_json_names_the_field(self):
        with pytest.raises(MalformedJsonField) as exc_info:
            validate_node_data(MasterNodeData, {"slug": "kyc", "input_format": "{bad"})
        assert exc_info.value.field == "input_format"

    def test_other_errors_become_canvas_errors(self):
        with pytest.raises(CanvasError, match="Invalid value for 'api_timeout_in_ms'") as exc_info:
            validate_node_data(TaskNodeData, {"api_timeout_in_ms": "soon"})
        assert not isinstance(exc_info.value, MalformedJsonField)


class TestMasterTemplateRequest:
    def test_create_payload(self):
        data = TaskNodeData(
            name="Verify",
            slug="verify",
            input_http_method="1",
            response_type="2",
            task_type=3,
            service_id="4",
            dependent_task_slug="a,b",
            bulk_input=True,
        )
        body = build_master_template_request(data)

        assert body["slug"] == "verify"
        assert body["dependent_task_slug"] == ["a", "b"]
        assert body["bulk_input"] is True
        assert body["input_http_method"] == 1
        assert body["responseType"] == 2
        assert body["task_type"] == 3
        assert body["service_id"] == 4
        assert body["api_timeout_in_ms"] == 30000
        assert "response_type" not in body

    def test_update_payload_omits_fixed_fields(self):
        body = build_master_template_request(MasterNodeData(slug="kyc"), for_update=True)

        for key in ("slug", "dependent_task_slug", "bulk_input"):
            assert key not in body
        assert body["input_http_method"] is None

    def test_master_create_payload_has_no_dependencies(self):
        body = build_master_template_request(MasterNodeData(slug="kyc"))
        assert body["dependent_task_slug"] == []
