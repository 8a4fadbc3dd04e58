"""
httpx-backed transport.

``send`` turns a PreparedRequest into a stream of deliveries: one
ResponseHead followed by body chunks. Cancelling the consuming task closes the
underlying httpx response. Server trust is checked from httpcore's ``trace``
extension when a TLS connection is established.
"""
import logging
from email.message import Message
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Optional, Union

import httpx

from ..auth.auth_handler import AuthChallengeHandler, ChallengeAuth, ServerTrust, TrustValidator
from ..errors import TrustRejectedError
from ..types import PreparedRequest, UploadCallback
from .coordinator import ResponseHead

logger = logging.getLogger("fetch_params_client.httpx_transport")

TraceCallback = Callable[[str, Dict[str, Any]], Awaitable[None]]


def _mime_type(response: httpx.Response) -> Optional[str]:
    content_type = response.headers.get("content-type")
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower() or None


def _suggested_filename(response: httpx.Response) -> Optional[str]:
    disposition = response.headers.get("content-disposition")
    if disposition:
        message = Message()
        message["content-disposition"] = disposition
        file_name = message.get_filename()
        if file_name:
            return file_name
    segment = response.url.path.rsplit("/", 1)[-1]
    return segment or None


def _expected_length(response: httpx.Response) -> Optional[int]:
    length = response.headers.get("content-length", "")
    return int(length) if length.isdigit() else None


def response_head(response: httpx.Response) -> ResponseHead:
    return ResponseHead(
        status_code=response.status_code,
        headers=dict(response.headers),
        url=str(response.url),
        mime_type=_mime_type(response),
        suggested_filename=_suggested_filename(response),
        expected_length=_expected_length(response),
    )


UPLOAD_CHUNK_SIZE = 64 * 1024


class UploadStream(httpx.AsyncByteStream):
    """Request body sent in fixed-size chunks, reporting bytes sent after each.

    Can be iterated again, so auth retries and 307/308 redirects resend it.
    """

    def __init__(self, body: bytes, on_sent: UploadCallback, chunk_size: int = UPLOAD_CHUNK_SIZE):
        self._body = body
        self._on_sent = on_sent
        self._chunk_size = chunk_size

    async def __aiter__(self) -> AsyncIterator[bytes]:
        total = len(self._body)
        for start in range(0, total, self._chunk_size):
            chunk = self._body[start:start + self._chunk_size]
            yield chunk
            self._on_sent(start + len(chunk), total)


def trust_trace(host: str, trust_validator: TrustValidator) -> TraceCallback:
    """httpcore ``trace`` hook that validates each new TLS connection.

    Raising from ``start_tls.complete`` aborts the connection before the
    request is written to it.
    """
    server_name = {"host": host}

    async def trace(event_name: str, info: Dict[str, Any]) -> None:
        if event_name.endswith(".start_tls.started"):
            server_name["host"] = info.get("server_hostname") or host
        elif event_name.endswith(".start_tls.complete"):
            network_stream = info.get("return_value")
            trust = ServerTrust.from_stream(server_name["host"], network_stream)
            if not trust_validator(trust, trust.host):
                logger.warning(f"HttpxTransport: trust rejected for {trust.host}")
                if network_stream is not None:
                    await network_stream.aclose()
                raise TrustRejectedError(trust.host)

    return trace


class HttpxTransport:
    """Sends PreparedRequests through an ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, upload_chunk_size: int = UPLOAD_CHUNK_SIZE):
        self._client = client
        self._upload_chunk_size = upload_chunk_size

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    def build_httpx_request(
        self,
        request: PreparedRequest,
        trust_validator: Optional[TrustValidator] = None,
        on_upload: Optional[UploadCallback] = None,
    ) -> httpx.Request:
        timeout = (
            httpx.Timeout(request.timeout)
            if request.timeout is not None
            else httpx.USE_CLIENT_DEFAULT
        )
        extensions: Dict[str, Any] = {}
        if trust_validator is not None:
            extensions["trace"] = trust_trace(httpx.URL(request.url).host, trust_validator)
        httpx_request = self._client.build_request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            content=request.body,
            timeout=timeout,
            extensions=extensions,
        )
        if not request.should_handle_cookies:
            httpx_request.headers.pop("cookie", None)
        if on_upload is not None and request.body:
            # Content-Length from the buffered request is kept, so no chunked encoding
            httpx_request = httpx.Request(
                httpx_request.method,
                httpx_request.url,
                headers=httpx_request.headers,
                stream=UploadStream(request.body, on_upload, self._upload_chunk_size),
                extensions=httpx_request.extensions,
            )
        return httpx_request

    async def send(
        self,
        request: PreparedRequest,
        auth: Optional[AuthChallengeHandler] = None,
        trust_validator: Optional[TrustValidator] = None,
        on_upload: Optional[UploadCallback] = None,
    ) -> AsyncIterator[Union[ResponseHead, bytes]]:
        """Yield the response head, then body chunks in arrival order.

        ``on_upload(bytes_sent, total)`` is called as the request body is written.

        Raises:
            httpx.HTTPError: connectivity failure or timeout.
            TrustRejectedError: the trust validator rejected a server during
                the TLS handshake.
        """
        httpx_request = self.build_httpx_request(request, trust_validator, on_upload)
        logger.debug(f"HttpxTransport.send: {httpx_request.method} {httpx_request.url}")

        response = await self._client.send(
            httpx_request,
            auth=ChallengeAuth(auth) if auth is not None else httpx.USE_CLIENT_DEFAULT,
            stream=True,
        )
        try:
            yield response_head(response)
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()
