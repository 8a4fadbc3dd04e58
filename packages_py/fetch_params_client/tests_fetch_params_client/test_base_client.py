"""
Tests for core/base_client.py
Logic testing: Decision/Branch, State Transition, Path coverage
"""
import asyncio
import email.policy
import os
from email.parser import BytesParser
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qsl

import httpx
import pytest
import respx
from httpx import Response

from fetch_params_client.auth.auth_handler import Credential
from fetch_params_client.config import ClientConfig
from fetch_params_client.core.base_client import AsyncHTTPClient
from fetch_params_client.core.serializers import JSONRequestSerializer, JSONResponseDecoder
from fetch_params_client.errors import (
    DecodeError,
    HTTPStatusError,
    InvalidURLError,
    RequestCancelledError,
    SerializationFailedError,
    TransportError,
    TrustRejectedError,
)
from fetch_params_client.transport.task import TaskState
from fetch_params_client.upload import Upload


class TestAsyncHTTPClient:
    """Tests for AsyncHTTPClient class."""

    # Path: constructor config resolution
    def test_init_config_resolution(self, client_config, mock_httpx_async_client):
        client = AsyncHTTPClient(client_config, httpx_client=mock_httpx_async_client)
        assert client.config.base_url == "https://api.example.com"
        assert client.config.timeout == 60.0
        assert client._closed is False

    # Error Path: invalid config
    def test_init_invalid_config(self):
        with pytest.raises(ValueError, match="Invalid base_url"):
            AsyncHTTPClient(ClientConfig(base_url="not a url"))

    # Path: default httpx client built from config
    @pytest.mark.asyncio
    async def test_default_httpx_client(self):
        with patch("fetch_params_client.core.base_client.httpx.AsyncClient") as mock_cls:
            mock_cls.return_value.aclose = AsyncMock()
            client = AsyncHTTPClient(ClientConfig(timeout=5, verify_ssl=False))
            await client.close()
        kwargs = mock_cls.call_args.kwargs
        assert kwargs["verify"] is False
        assert kwargs["follow_redirects"] is True
        assert kwargs["timeout"] == httpx.Timeout(5)

    # Happy Path: GET with query parameters
    @pytest.mark.asyncio
    async def test_get_with_params(self, client_config, router, mock_httpx_client):
        route = router.get("https://api.example.com/search").mock(
            return_value=Response(200, json={"hits": 1})
        )
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.get("/search", {"q": "a b", "filter": {"tags": ["x", "y"]}})

        assert response.ok is True
        assert response.status_code == 200
        request = route.calls.last.request
        assert parse_qsl(request.url.query.decode()) == [
            ("q", "a b"),
            ("filter[tags][]", "x"),
            ("filter[tags][]", "y"),
        ]

    # Path: POST form body
    @pytest.mark.asyncio
    async def test_post_form(self, client_config, router, mock_httpx_client):
        route = router.post("https://api.example.com/items").mock(return_value=Response(201))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.post("/items", {"name": "x", "n": 2})

        assert response.status_code == 201
        request = route.calls.last.request
        assert request.content == b"name=x&n=2"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded; charset=utf-8"

    # Path: multipart upload parses on the server side
    @pytest.mark.asyncio
    async def test_multipart_upload(self, client_config, router, mock_httpx_client, memory_upload):
        route = router.put("https://api.example.com/upload").mock(return_value=Response(200))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            await client.put("/upload", {"name": "x", "file": memory_upload}, headers={"X-Trace": "1"})

        request = route.calls.last.request
        assert request.method == "PUT"
        assert request.headers["x-trace"] == "1"
        raw = f"Content-Type: {request.headers['content-type']}\r\n\r\n".encode() + request.content
        parts = list(BytesParser(policy=email.policy.HTTP).parsebytes(raw).iter_parts())
        assert [p.get_param("name", header="content-disposition") for p in parts] == ["name", "file"]
        assert parts[1].get_filename() == "image.png"

    # Decision: uploads force POST for verbs without a body
    @pytest.mark.asyncio
    async def test_upload_forces_post(self, client_config, router, mock_httpx_client, memory_upload):
        route = router.post("https://api.example.com/upload").mock(return_value=Response(200))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            await client.request("OPTIONS", "/upload", {"file": memory_upload})
        assert route.calls.last.request.method == "POST"

    # Path: JSON serializer and decoder
    @pytest.mark.asyncio
    async def test_json_round_trip(self, router, mock_httpx_client):
        route = router.patch("https://api.example.com/items/1").mock(
            return_value=Response(200, json={"id": 1, "name": "y"})
        )
        config = ClientConfig(
            base_url="https://api.example.com",
            request_serializer=JSONRequestSerializer(),
            response_decoder=JSONResponseDecoder(),
        )
        async with AsyncHTTPClient(config, httpx_client=mock_httpx_client) as client:
            response = await client.patch("/items/1", {"name": "y"})

        assert response.decoded_object == {"id": 1, "name": "y"}
        assert route.calls.last.request.headers["content-type"] == "application/json; charset=utf-8"

    # Decision: 404 response carries status error
    @pytest.mark.asyncio
    async def test_404(self, client_config, router, mock_httpx_client):
        router.get("https://api.example.com/missing").mock(return_value=Response(404, text="nope"))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.get("/missing")

        assert response.ok is False
        assert isinstance(response.error, HTTPStatusError)
        assert response.error.code == 404
        assert response.error.message == "Page not found"
        assert response.text == "nope"

    # Decision: 204 response has no error
    @pytest.mark.asyncio
    async def test_204(self, client_config, router, mock_httpx_client):
        router.delete("https://api.example.com/items/1").mock(return_value=Response(204))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.delete("/items/1")
        assert response.error is None
        assert response.data == b""

    # Path: HEAD request
    @pytest.mark.asyncio
    async def test_head(self, client_config, router, mock_httpx_client):
        route = router.head("https://api.example.com/items").mock(return_value=Response(200))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            await client.head("/items", {"a": 1})
        assert route.calls.last.request.url.query == b"a=1"

    # Error Path: decode failure on 200
    @pytest.mark.asyncio
    async def test_decode_error(self, router, mock_httpx_client):
        router.get("https://api.example.com/bad").mock(return_value=Response(200, text="<html>"))
        config = ClientConfig(base_url="https://api.example.com", response_decoder=JSONResponseDecoder())
        async with AsyncHTTPClient(config, httpx_client=mock_httpx_client) as client:
            response = await client.get("/bad")
        assert isinstance(response.error, DecodeError)

    # Error Path: transport error reported on the response
    @pytest.mark.asyncio
    async def test_transport_error(self, client_config, router, mock_httpx_client):
        router.get("https://api.example.com/down").mock(side_effect=httpx.ConnectError("refused"))
        completion = MagicMock()
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.get("/down", completion=completion)

        assert isinstance(response.error, TransportError)
        assert isinstance(response.error.__cause__, httpx.ConnectError)
        completion.assert_called_once_with(response)

    # Error Path: build errors raise
    @pytest.mark.asyncio
    async def test_invalid_url_raises(self, mock_httpx_client):
        async with AsyncHTTPClient(ClientConfig(), httpx_client=mock_httpx_client) as client:
            with pytest.raises(InvalidURLError):
                await client.get("/relative")

    @pytest.mark.asyncio
    async def test_missing_upload_raises(self, client_config, mock_httpx_client, tmp_path):
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            with pytest.raises(SerializationFailedError):
                await client.post("/upload", {"f": Upload.from_path(tmp_path / "missing")})

    # Path: upload progress for a multipart body
    @pytest.mark.asyncio
    async def test_upload_progress(self, client_config, router, mock_httpx_client):
        route = router.post("https://api.example.com/upload").mock(return_value=Response(201))
        upload = Upload.from_bytes(b"\x00" * 200_000, file_name="big.bin", mime_type="application/octet-stream")
        progress = MagicMock()
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.post("/upload", {"file": upload}, progress=progress)
        assert response.status_code == 201
        values = [c.args[0] for c in progress.call_args_list]
        assert len(values) > 1
        assert values == sorted(values)
        assert values[-1] == 1.0
        assert len(route.calls.last.request.content) > 200_000

    # Error Path: value not representable in the string encoding
    @pytest.mark.asyncio
    async def test_unencodable_value_raises(self, router, mock_httpx_client):
        config = ClientConfig(base_url="https://api.example.com", string_encoding="latin-1")
        async with AsyncHTTPClient(config, httpx_client=mock_httpx_client) as client:
            with pytest.raises(SerializationFailedError):
                await client.post("/items", {"name": "\u20ac"})

    # Path: progress callback
    @pytest.mark.asyncio
    async def test_progress(self, client_config, router, mock_httpx_client):
        router.get("https://api.example.com/blob").mock(return_value=Response(200, content=b"x" * 10))
        progress = MagicMock()
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            await client.get("/blob", progress=progress)
        assert progress.call_args_list[-1].args[0] == 1.0

    # Path: download to a temp file
    @pytest.mark.asyncio
    async def test_download(self, client_config, router, mock_httpx_client):
        router.get("https://api.example.com/files/a.bin").mock(
            return_value=Response(200, content=b"binary")
        )
        handler = MagicMock()
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.download("/files/a.bin", handler=handler)

        try:
            handler.assert_called_once_with(response.download_path)
            assert response.suggested_filename == "a.bin"
            assert response.data == b""
            with open(response.download_path, "rb") as f:
                assert f.read() == b"binary"
        finally:
            os.unlink(response.download_path)

    # State: new returns an unstarted task
    @pytest.mark.asyncio
    async def test_new_task(self, client_config, router, mock_httpx_client):
        router.get("https://api.example.com/a").mock(return_value=Response(200))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            task = client.new("/a")
            assert task.state == TaskState.READY
            assert client.coordinator.in_flight == 1
            response = await client.run(task)
            assert response.status_code == 200
            assert client.coordinator.in_flight == 0

    # State: cancel a task before start
    @pytest.mark.asyncio
    async def test_cancel_before_start(self, client_config, router, mock_httpx_client):
        route = router.get("https://api.example.com/a").mock(return_value=Response(200))
        completion = MagicMock()
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            task = client.new("/a")
            task.cancel()
            assert await client.run(task, completion=completion) is None
        assert not route.called
        completion.assert_not_called()

    # State: cancel an in-flight request
    @pytest.mark.asyncio
    async def test_cancel_in_flight(self, client_config, router, mock_httpx_client):
        started = asyncio.Event()

        async def slow(request):
            started.set()
            await asyncio.sleep(10)
            return Response(200)

        router.get("https://api.example.com/slow").mock(side_effect=slow)
        completion = MagicMock()
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            task = client.new("/slow")
            task.start(completion)
            await started.wait()
            task.cancel()
            response = await task.wait()

        assert isinstance(response.error, RequestCancelledError)
        completion.assert_called_once_with(response)

    # Path: dependent task waits for its prerequisite
    @pytest.mark.asyncio
    async def test_dependencies(self, client_config, router, mock_httpx_client):
        order = []

        def record(name):
            def side_effect(request):
                order.append(name)
                return Response(200)
            return side_effect

        router.get("https://api.example.com/first").mock(side_effect=record("first"))
        router.get("https://api.example.com/second").mock(side_effect=record("second"))
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            first, second = client.new("/first"), client.new("/second")
            second.add_dependency(first)
            second.start()
            first.start()
            await asyncio.gather(first.wait(), second.wait())
        assert order == ["first", "second"]

    # Path: client-wide auth handler answers challenges
    @pytest.mark.asyncio
    async def test_auth_challenge(self, client_config, router, mock_httpx_client):
        route = router.get("https://api.example.com/secret")
        route.side_effect = [
            Response(401, headers={"WWW-Authenticate": 'Bearer realm="api"'}),
            Response(200),
        ]
        client = AsyncHTTPClient(
            client_config,
            httpx_client=mock_httpx_client,
            auth=MagicMock(return_value=Credential(token="tok")),
        )
        async with client:
            response = await client.get("/secret")
        assert response.status_code == 200
        assert route.calls.last.request.headers["authorization"] == "Bearer tok"

    # Decision: unset auth handler passes the 401 through
    @pytest.mark.asyncio
    async def test_no_auth_handler(self, client_config, router, mock_httpx_client):
        router.get("https://api.example.com/secret").mock(
            return_value=Response(401, headers={"WWW-Authenticate": "Basic"})
        )
        async with AsyncHTTPClient(client_config, httpx_client=mock_httpx_client) as client:
            response = await client.get("/secret")
        assert response.error.code == 401
        assert response.error.message == "Access denied"

    # Decision: client-wide trust validator rejects before the request is sent
    @pytest.mark.asyncio
    async def test_trust_rejected(self, client_config, router, tls_httpx_client):
        route = router.post("https://api.example.com/a").mock(return_value=Response(200))
        completion = MagicMock()
        client = AsyncHTTPClient(client_config, httpx_client=tls_httpx_client)
        client.security = MagicMock(return_value=False)
        async with client:
            response = await client.post("/a", {"password": "hunter2"}, completion=completion)
        assert isinstance(response.error, TrustRejectedError)
        assert "api.example.com" in str(response.error)
        assert not route.called
        completion.assert_called_once_with(response)

    # Path: independent clients do not share state
    @pytest.mark.asyncio
    async def test_independent_clients(self, client_config, mock_httpx_async_client):
        first = AsyncHTTPClient(client_config, httpx_client=mock_httpx_async_client)
        second = AsyncHTTPClient(client_config, httpx_client=mock_httpx_async_client)
        first.auth = MagicMock()
        assert second.auth is None
        assert first.coordinator is not second.coordinator

    # Path: verbose mode prints request and response
    @pytest.mark.asyncio
    async def test_verbose(self, router, mock_httpx_client):
        router.get("https://api.example.com/a").mock(return_value=Response(200, text="ok"))
        config = ClientConfig(base_url="https://api.example.com", verbose=True)
        with patch("fetch_params_client.core.base_client.print_request") as print_request, patch(
            "fetch_params_client.core.base_client.print_response"
        ) as print_response:
            async with AsyncHTTPClient(config, httpx_client=mock_httpx_client) as client:
                await client.get("/a")
        print_request.assert_called_once()
        print_response.assert_called_once()
        assert print_response.call_args[0][1] == 200

    # State: request on closed client
    @pytest.mark.asyncio
    async def test_request_closed_client(self, client_config, mock_httpx_async_client):
        client = AsyncHTTPClient(client_config, httpx_client=mock_httpx_async_client)
        await client.close()
        mock_httpx_async_client.aclose.assert_awaited_once()
        with pytest.raises(RuntimeError, match="Client has been closed"):
            await client.get("/users")

    # Path: respx global mock also intercepts the default client
    @pytest.mark.asyncio
    @respx.mock
    async def test_with_respx_mock(self, client_config):
        respx.get("https://api.example.com/ping").mock(return_value=Response(200, text="pong"))
        async with AsyncHTTPClient(client_config) as client:
            response = await client.get("/ping")
        assert response.text == "pong"
