import json
import logging
from datetime import datetime, timezone

import pytest
import requests

from cloudnode import API_VERSION, Cloudnode, compare_versions
from cloudnode.errors import ApiError, ErrorCode, UnknownOperationError
from cloudnode.schema.base import Schema
from conftest import make_response


def _sent(session):
    """(method, url, kwargs) of the last request sent."""
    args, kwargs = session.request.call_args
    return args[0], args[1], kwargs


class TestRequestExecutor:
    def test_path_parameters_are_quoted(self, client, session):
        session.request.return_value = make_response(200, {"id": "a b/c"})
        client.call("items.get", id="a b/c")
        method, url, _ = _sent(session)
        assert method == "GET"
        assert url == "https://api.example.com/v1/items/a%20b%2Fc"

    def test_returns_envelope(self, client, session):
        session.request.return_value = make_response(200, {"id": "abc", "created": "2024-05-01T10:00:00Z"})
        response = client.call("items.get", id="abc")
        assert response["id"] == "abc"
        assert response["created"] == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
        assert response.raw.status == 200
        assert response.raw.request.path_params == {"id": "abc"}

    def test_user_agent(self, client, session):
        session.request.return_value = make_response(200, {"pong": True})
        client.call("ping")
        _, _, kwargs = _sent(session)
        assert kwargs["headers"]["User-Agent"].startswith("cloudnode-python/")

    def test_no_auth_header_for_public_operation(self, client, session):
        session.request.return_value = make_response(200, {"pong": True})
        client.call("ping")
        _, _, kwargs = _sent(session)
        assert "Authorization" not in kwargs["headers"]

    def test_auth_header_for_scoped_operation(self, client, session):
        session.request.return_value = make_response(200, {"id": "abc"})
        client.call("items.get", id="abc")
        _, _, kwargs = _sent(session)
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_auth_header_for_null_token_operation(self, client, session):
        session.request.return_value = make_response(201, {"id": "abc"})
        client.call("items.create", name="thing")
        _, _, kwargs = _sent(session)
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    def test_no_auth_header_without_token(self, schema, session):
        client = Cloudnode(options="https://api.example.com/v1", schema=schema, session=session)
        session.request.return_value = make_response(200, {"id": "abc"})
        client.call("items.get", id="abc")
        _, _, kwargs = _sent(session)
        assert "Authorization" not in kwargs["headers"]

    def test_json_body(self, client, session):
        session.request.return_value = make_response(201, {"id": "abc"})
        client.call("items.create", name="thing", tags=["a"])
        method, url, kwargs = _sent(session)
        assert method == "POST"
        assert url == "https://api.example.com/v1/items"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert json.loads(kwargs["data"]) == {"name": "thing", "tags": ["a"]}

    def test_datetime_body_serialised(self, client, session, schema):
        session.request.return_value = make_response(201, {"id": "abc"})
        op = client.operation("items.create")
        client._send_raw_request(op, {}, {}, {"when": datetime(2024, 1, 1, tzinfo=timezone.utc)})
        _, _, kwargs = _sent(session)
        assert json.loads(kwargs["data"]) == {"when": "2024-01-01T00:00:00+00:00"}

    def test_text_body(self, client, session):
        session.request.return_value = make_response(201, {"id": "abc"})
        client._send_raw_request(client.operation("items.create"), {}, {}, "hello")
        _, _, kwargs = _sent(session)
        assert kwargs["headers"]["Content-Type"] == "text/plain"
        assert kwargs["data"] == b"hello"

    def test_get_never_sends_body(self, client, session):
        session.request.return_value = make_response(200, {"id": "abc"})
        client._send_raw_request(client.operation("items.get"), {"id": "abc"}, {}, {"unexpected": 1})
        _, _, kwargs = _sent(session)
        assert kwargs["data"] is None
        assert "Content-Type" not in kwargs["headers"]

    def test_no_content(self, client, session):
        session.request.return_value = make_response(204, None, reason="No Content")
        response = client.call("items.transfer", id="abc", from_="a", to="b")
        assert response.data is None
        assert response.raw.status == 204
        _, url, kwargs = _sent(session)
        assert url == "https://api.example.com/v1/items/abc/transfer"
        assert json.loads(kwargs["data"]) == {"from": "a", "to": "b"}

    def test_text_response(self, client, session):
        session.request.return_value = make_response(200, "pong", headers={"Content-Type": "text/plain"})
        assert client.call("ping").data == "pong"

    def test_error_status_raises(self, client, session):
        session.request.return_value = make_response(
            404, {"code": "RESOURCE_NOT_FOUND", "message": "Item not found"}, reason="Not Found"
        )
        with pytest.raises(ApiError) as exc_info:
            client.call("items.get", id="missing")
        error = exc_info.value
        assert error.status == 404
        assert error.code == ErrorCode.RESOURCE_NOT_FOUND
        assert error.message == "Item not found"
        assert error.fields == {}
        assert error.response.raw.ok is False
        assert session.request.call_count == 1

    def test_validation_error_fields(self, client, session):
        session.request.return_value = make_response(
            422, {"code": "INVALID_DATA", "message": "Invalid", "fields": {"name": "Too long"}}, reason="Unprocessable Entity"
        )
        with pytest.raises(ApiError) as exc_info:
            client.call("items.create", name="x" * 300)
        assert exc_info.value.fields == {"name": "Too long"}

    def test_transport_error_propagates(self, client, session):
        session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(requests.ConnectionError):
            client.call("ping")
        assert session.request.call_count == 1


class TestCall:
    def test_query_defaults_applied(self, client, session):
        session.request.return_value = make_response(200, {"items": [], "total": 0, "limit": 10, "page": 1})
        client.call("items.list")
        _, _, kwargs = _sent(session)
        assert kwargs["params"] == {"limit": "10", "page": "1"}

    def test_snake_case_and_boolean_encoding(self, client, session):
        session.request.return_value = make_response(200, {"items": [], "total": 0, "limit": 5, "page": 1})
        client.call("items.list", limit=5, include_archived=True)
        _, _, kwargs = _sent(session)
        assert kwargs["params"] == {"limit": "5", "page": "1", "includeArchived": "true"}

    def test_schema_name_accepted(self, client, session):
        session.request.return_value = make_response(200, {"items": [], "total": 0, "limit": 10, "page": 1})
        client.call("items.list", includeArchived=False)
        _, _, kwargs = _sent(session)
        assert kwargs["params"]["includeArchived"] == "false"

    def test_none_query_value_omitted(self, client, session):
        session.request.return_value = make_response(200, {"items": [], "total": 0, "limit": 10, "page": 1})
        client.call("items.list", include_archived=None)
        _, _, kwargs = _sent(session)
        assert "includeArchived" not in kwargs["params"]

    def test_unknown_parameter(self, client, session):
        with pytest.raises(TypeError, match="unexpected parameter 'colour'"):
            client.call("items.get", id="abc", colour="red")
        session.request.assert_not_called()

    def test_missing_required_parameter(self, client, session):
        with pytest.raises(TypeError, match="missing required parameter 'id'"):
            client.call("items.get")
        session.request.assert_not_called()

    def test_unknown_operation(self, client):
        with pytest.raises(UnknownOperationError):
            client.call("items.explode")

    def test_request_options_override(self, client, session):
        session.request.return_value = make_response(429, {"code": "RATE_LIMITED"}, headers={"X-RateLimit-Reset": "1"})
        with pytest.raises(ApiError):
            client.call("ping", request_options={"max_retries": 0})
        assert session.request.call_count == 1


class TestNamespaces:
    def test_namespace_attribute(self, client, session):
        session.request.return_value = make_response(200, {"id": "abc"})
        response = client.items.get(id="abc")
        assert response["id"] == "abc"
        _, url, _ = _sent(session)
        assert url == "https://api.example.com/v1/items/abc"

    def test_unknown_namespace_operation(self, client):
        with pytest.raises(AttributeError):
            client.items.explode

    def test_dir_lists_operations(self, client):
        assert {"list", "get", "create", "transfer"} <= set(dir(client.items))

    def test_snake_case_operation_names(self, session):
        schema = Schema.model_validate(
            {
                "operations": {
                    "news": {
                        "type": "namespace",
                        "operations": {"listSubscriptions": {"type": "operation", "method": "GET", "path": "/subs"}},
                    }
                }
            }
        )
        client = Cloudnode(schema=schema, session=session)
        session.request.return_value = make_response(200, [])
        client.news.list_subscriptions()
        _, url, _ = _sent(session)
        assert url == "https://api.cloudnode.pro/v5/subs"

    def test_reserved_namespace_name(self, session, caplog):
        schema = Schema.model_validate(
            {"operations": {"call": {"type": "namespace", "operations": {"x": {"type": "operation", "method": "GET", "path": "/x"}}}}}
        )
        with caplog.at_level(logging.WARNING, logger="cloudnode.client"):
            client = Cloudnode(schema=schema, session=session)
        assert callable(client.call)
        assert "clashes" in caplog.text

    def test_bundled_schema_namespaces(self, session):
        client = Cloudnode("secret", session=session)
        session.request.return_value = make_response(200, {"id": "p1", "name": "Proj", "user": "u1"})
        client.projects.get(id="p1")
        _, url, kwargs = _sent(session)
        assert url == "https://api.cloudnode.pro/v5/projects/p1"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"


class TestCompatibility:
    @pytest.mark.parametrize(
        "server,expected",
        [
            (API_VERSION, "compatible"),
            ("5.12.9", "compatible"),
            ("5.13.0", "outdated"),
            ("6.0.0", "incompatible"),
        ],
    )
    def test_check_compatibility(self, client, session, server, expected):
        session.request.return_value = make_response(200, {"version": server})
        assert client.check_compatibility() == expected
        method, url, _ = _sent(session)
        assert method == "GET"
        assert url == "https://api.example.com/"

    def test_compare_versions(self):
        assert compare_versions("5.1", "5.1.4") == "compatible"
        assert compare_versions("4", "5.0.0") == "incompatible"
        assert compare_versions("5", "5.2.0") == "outdated"
