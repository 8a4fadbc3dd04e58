"""
Base HTTP client using httpx.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from ..auth.auth_handler import AuthChallengeHandler, TrustValidator
from ..config import ClientConfig, ResolvedConfig, resolve_config
from ..console import print_request, print_response
from ..transport.coordinator import TransportCoordinator
from ..transport.httpx_transport import HttpxTransport
from ..transport.task import HTTPTask
from ..types import (
    CompletionHandler,
    DownloadHandler,
    HttpMethod,
    HttpVerb,
    Params,
    ProgressHandler,
    RequestSerializer,
)
from .request_builder import build_request
from .response import Response

logger = logging.getLogger("fetch_params_client.base_client")


class AsyncHTTPClient:
    """Asynchronous HTTP client.

    Each client owns its TransportCoordinator, so independent clients never
    share task state or hooks.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        httpx_client: Optional[httpx.AsyncClient] = None,
        auth: Optional[AuthChallengeHandler] = None,
        security: Optional[TrustValidator] = None,
    ):
        self._config = resolve_config(config or ClientConfig())
        if httpx_client is None:
            httpx_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout),
                verify=self._config.verify_ssl,
                follow_redirects=True,
            )
        self._transport = HttpxTransport(httpx_client)
        self.coordinator = TransportCoordinator(
            auth=auth,
            security=security,
            response_decoder=self._config.response_decoder,
        )
        self._closed = False

    @property
    def config(self) -> ResolvedConfig:
        return self._config

    @property
    def auth(self) -> Optional[AuthChallengeHandler]:
        """Client-wide auth challenge handler."""
        return self.coordinator.auth

    @auth.setter
    def auth(self, handler: Optional[AuthChallengeHandler]) -> None:
        self.coordinator.auth = handler

    @property
    def security(self) -> Optional[TrustValidator]:
        """Client-wide server trust validator."""
        return self.coordinator.security

    @security.setter
    def security(self, validator: Optional[TrustValidator]) -> None:
        self.coordinator.security = validator

    def new(
        self,
        url: str,
        method: HttpMethod = HttpVerb.GET,
        parameters: Optional[Params] = None,
        headers: Optional[Dict[str, str]] = None,
        request_serializer: Optional[RequestSerializer] = None,
        is_download: bool = False,
    ) -> HTTPTask:
        """Build a request and wrap it in an unstarted HTTPTask.

        Raises:
            InvalidURLError, SerializationFailedError, EncodingFailedError
        """
        if self._closed:
            raise RuntimeError("Client has been closed")

        request = build_request(
            self._config,
            url,
            method=method,
            parameters=parameters,
            headers=headers,
            request_serializer=request_serializer,
        )
        task = HTTPTask(request, self.coordinator, self._transport, is_download=is_download)
        logger.debug(f"AsyncHTTPClient.new: created {task!r}")
        return task

    async def run(
        self,
        task: HTTPTask,
        completion: Optional[CompletionHandler] = None,
        progress: Optional[ProgressHandler] = None,
    ) -> Response:
        """Start ``task`` and wait for its response."""
        if progress is not None:
            task.progress = progress
        request = task.request
        if self._config.verbose:
            print_request(request.method, request.url, request.headers, request.body)

        task.start(completion)
        response = await task.wait()

        if self._config.verbose and response is not None:
            print_response(response.url, response.status_code, response.headers, response.data, response.error)
        return response

    async def request(
        self,
        method: HttpMethod = HttpVerb.GET,
        url: str = "/",
        parameters: Optional[Params] = None,
        headers: Optional[Dict[str, str]] = None,
        request_serializer: Optional[RequestSerializer] = None,
        completion: Optional[CompletionHandler] = None,
        progress: Optional[ProgressHandler] = None,
    ) -> Response:
        """Make a request and return the normalized response.

        Exchange failures (transport, status >= 300, decode) are reported on
        ``Response.error``; build failures raise.
        """
        task = self.new(url, method, parameters, headers, request_serializer)
        return await self.run(task, completion=completion, progress=progress)

    async def get(self, url: str, parameters: Optional[Params] = None, **kwargs: Any) -> Response:
        """GET request."""
        return await self.request(HttpVerb.GET, url, parameters, **kwargs)

    async def head(self, url: str, parameters: Optional[Params] = None, **kwargs: Any) -> Response:
        """HEAD request."""
        return await self.request(HttpVerb.HEAD, url, parameters, **kwargs)

    async def delete(self, url: str, parameters: Optional[Params] = None, **kwargs: Any) -> Response:
        """DELETE request."""
        return await self.request(HttpVerb.DELETE, url, parameters, **kwargs)

    async def post(self, url: str, parameters: Optional[Params] = None, **kwargs: Any) -> Response:
        """POST request."""
        return await self.request(HttpVerb.POST, url, parameters, **kwargs)

    async def put(self, url: str, parameters: Optional[Params] = None, **kwargs: Any) -> Response:
        """PUT request."""
        return await self.request(HttpVerb.PUT, url, parameters, **kwargs)

    async def patch(self, url: str, parameters: Optional[Params] = None, **kwargs: Any) -> Response:
        """PATCH request."""
        return await self.request(HttpVerb.PATCH, url, parameters, **kwargs)

    async def download(
        self,
        url: str,
        parameters: Optional[Params] = None,
        headers: Optional[Dict[str, str]] = None,
        handler: Optional[DownloadHandler] = None,
        progress: Optional[ProgressHandler] = None,
        request_serializer: Optional[RequestSerializer] = None,
    ) -> Response:
        """GET ``url`` into a temporary file.

        The body is written to disk instead of memory; ``handler`` receives the
        file path on success, and the path is also set on
        ``Response.download_path``. Moving or deleting the file is up to the
        caller.
        """
        task = self.new(url, HttpVerb.GET, parameters, headers, request_serializer, is_download=True)
        if handler is not None:
            task.download_handler = handler
        return await self.run(task, progress=progress)

    async def close(self) -> None:
        """Close the client."""
        self._closed = True
        await self._transport.client.aclose()

    async def __aenter__(self) -> "AsyncHTTPClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()
