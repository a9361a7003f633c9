"""Tests for the http node and the HTTP capability transport (real aiohttp server)."""
import json

import pytest

from flow_core.capabilities import HTTPCapabilityTransport
from flow_core.errors import ErrorKind, NodeExecutionError, TransportError
from flow_core.nodes.http import HTTPNode


class TestBuildRequest:
    def test_missing_url(self):
        with pytest.raises(NodeExecutionError, match="URL is required"):
            HTTPNode().build_request({}, {})

    def test_url_placeholders_are_encoded(self):
        request = HTTPNode().build_request({"q": "a b"}, {"url": "http://x/search?q={{q}}"})
        assert request["url"] == "http://x/search?q=a+b"
        assert request["method"] == "GET"

    def test_body_only_for_body_methods(self):
        node = HTTPNode()
        assert node.build_request({"body": {"a": 1}}, {"url": "http://x", "method": "get"})["data"] is None
        request = node.build_request({"body": {"a": 1}}, {"url": "http://x", "method": "post"})
        assert request["method"] == "POST"
        assert json.loads(request["data"]) == {"a": 1}
        assert request["headers"]["Content-Type"] == "application/json"

    def test_string_body_sent_raw(self):
        request = HTTPNode().build_request({}, {"url": "http://x", "method": "PUT", "body": "raw"})
        assert request["data"] == "raw"

    def test_headers_from_json_string(self):
        request = HTTPNode().build_request(
            {"body": "x"},
            {"url": "http://x", "method": "PATCH", "headers": '{"content-type": "text/plain"}'},
        )
        assert request["headers"] == {"content-type": "text/plain"}

    def test_invalid_headers(self):
        with pytest.raises(NodeExecutionError, match="headers"):
            HTTPNode().build_request({}, {"url": "http://x", "headers": "{not json"})


class TestHTTPNode:
    @pytest.mark.asyncio
    async def test_get_json(self, http_server):
        node = HTTPNode(timeout=5)
        result = await node({}, {"url": str(http_server.make_url("/echo")), "headers": {"X-Token": "t1"}})
        assert result["status"] == 200
        assert result["output"]["method"] == "GET"
        assert result["output"]["x_token"] == "t1"
        assert "Content-Type" in result["headers"]

    @pytest.mark.asyncio
    async def test_post_body_from_input(self, http_server):
        node = HTTPNode(timeout=5)
        result = await node(
            {"body": {"name": "Ada"}},
            {"url": str(http_server.make_url("/echo")), "method": "POST"},
        )
        assert result["output"]["method"] == "POST"
        assert json.loads(result["output"]["body"]) == {"name": "Ada"}
        assert result["output"]["content_type"] == "application/json"

    @pytest.mark.asyncio
    async def test_plain_text_response(self, http_server):
        result = await HTTPNode(timeout=5)({}, {"url": str(http_server.make_url("/plain"))})
        assert result["output"] == "just text"

    @pytest.mark.asyncio
    async def test_error_status_is_not_raised(self, http_server):
        result = await HTTPNode(timeout=5)({}, {"url": str(http_server.make_url("/missing"))})
        assert result["status"] == 404
        assert result["output"] == {"error": "not here"}

    @pytest.mark.asyncio
    async def test_connection_failure_raises_transport_error(self, unused_tcp_port):
        with pytest.raises(TransportError) as exc_info:
            await HTTPNode(timeout=2)({}, {"url": f"http://127.0.0.1:{unused_tcp_port}/"})
        assert exc_info.value.kind == ErrorKind.TRANSPORT
        assert "HTTP request failed" in str(exc_info.value)


class TestHTTPCapabilityTransport:
    def test_url_for(self):
        transport = HTTPCapabilityTransport("http://host/wp-json/")
        assert transport.url_for("aevov-language/v1", "/generate") == "http://host/wp-json/aevov-language/v1/generate"
        assert transport.url_for("/ns/", "run") == "http://host/wp-json/ns/run"

    @pytest.mark.asyncio
    async def test_post_sends_json(self, http_server):
        transport = HTTPCapabilityTransport(str(http_server.make_url("/echo")), timeout=5)
        response = await transport.call("lang/v1", "/generate", "post", {"prompt": "hi"})
        assert response.ok
        assert response.body["path"] == "/echo/lang/v1/generate"
        assert json.loads(response.body["body"]) == {"prompt": "hi"}

    @pytest.mark.asyncio
    async def test_get_sends_query(self, http_server):
        transport = HTTPCapabilityTransport(str(http_server.make_url("/echo")), timeout=5)
        response = await transport.call("ns", "/find", "GET", {"q": "x", "deep": True, "n": 3})
        assert response.body["method"] == "GET"
        assert response.body["query"] == {"q": "x", "deep": "true", "n": "3"}

    @pytest.mark.asyncio
    async def test_error_status_returned(self, http_server):
        transport = HTTPCapabilityTransport(str(http_server.make_url("/")), timeout=5)
        response = await transport.call("", "/broken", "POST", {})
        assert response.status == 500
        assert not response.ok
        assert response.body == {"message": "engine exploded"}

    @pytest.mark.asyncio
    async def test_connection_failure(self, unused_tcp_port):
        transport = HTTPCapabilityTransport(f"http://127.0.0.1:{unused_tcp_port}", timeout=2)
        with pytest.raises(TransportError):
            await transport.call("ns", "/x", "POST", {})
