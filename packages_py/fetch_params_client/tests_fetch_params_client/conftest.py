"""
Shared fixtures for fetch_params_client tests.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

import httpx
import respx

from fetch_params_client.config import ClientConfig, resolve_config
from fetch_params_client.upload import Upload


BASE_URL = "https://api.example.com"
SERVER_CERTIFICATE = b"server-der-certificate"


class TLSHandshakeTransport(httpx.AsyncBaseTransport):
    """Emits the start_tls trace events of a new https connection, then hands off to the router."""

    def __init__(self, router, certificate=SERVER_CERTIFICATE):
        self._router = router
        self._certificate = certificate

    async def handle_async_request(self, request):
        trace = request.extensions.get("trace")
        if trace is not None and request.url.scheme == "https":
            ssl_object = MagicMock()
            ssl_object.getpeercert.return_value = self._certificate
            network_stream = MagicMock()
            network_stream.get_extra_info.return_value = ssl_object
            network_stream.aclose = AsyncMock()
            await trace("connection.start_tls.started", {"server_hostname": request.url.host})
            await trace("connection.start_tls.complete", {"return_value": network_stream})
        await request.aread()
        return await self._router.async_handler(request)


@pytest.fixture
def client_config():
    """Sample ClientConfig for testing."""
    return ClientConfig(base_url=BASE_URL, verify_ssl=True)


@pytest.fixture
def resolved_config(client_config):
    """Resolved sample config."""
    return resolve_config(client_config)


@pytest.fixture
def router():
    """respx router used through an explicit MockTransport."""
    return respx.MockRouter(assert_all_called=False)


@pytest.fixture
def mock_httpx_client(router):
    """httpx.AsyncClient wired to the respx router."""
    return httpx.AsyncClient(transport=httpx.MockTransport(router.async_handler))


@pytest.fixture
def server_certificate():
    """DER bytes presented by TLSHandshakeTransport."""
    return SERVER_CERTIFICATE


@pytest.fixture
def tls_httpx_client(router):
    """httpx.AsyncClient that runs TLS trace hooks before routing each https request."""
    return httpx.AsyncClient(transport=TLSHandshakeTransport(router), follow_redirects=True)


@pytest.fixture
def mock_httpx_async_client():
    """Mock httpx.AsyncClient for testing."""
    client = AsyncMock(spec=httpx.AsyncClient)
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def text_file(tmp_path):
    """Small text file on disk."""
    path = tmp_path / "notes.txt"
    path.write_bytes(b"hello upload")
    return path


@pytest.fixture
def memory_upload():
    """In-memory upload with explicit name and type."""
    return Upload.from_bytes(b"\x89PNG-data", file_name="image.png", mime_type="image/png")
