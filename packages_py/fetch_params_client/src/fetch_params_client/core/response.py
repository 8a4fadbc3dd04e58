"""
Response model and normalization.

The transport delivers a response in stages: head (status, headers), body
chunks, completion. ResponseAccumulator folds those stages into a Response and
classifies the result on completion.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..errors import DecodeError, FetchParamsError, HTTPStatusError, TransportError
from ..status_codes import status_description
from ..types import ResponseDecoder

logger = logging.getLogger("fetch_params_client.response")


@dataclass
class Response:
    """All the things of an HTTP response."""

    status_code: Optional[int] = None
    headers: Optional[Dict[str, str]] = None
    mime_type: Optional[str] = None
    suggested_filename: Optional[str] = None
    url: Optional[str] = None
    body: bytearray = field(default_factory=bytearray)
    decoded_object: Any = None
    error: Optional[FetchParamsError] = None
    download_path: Optional[str] = None

    @property
    def data(self) -> bytes:
        return bytes(self.body)

    @property
    def text(self) -> Optional[str]:
        try:
            return self.body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def description(self) -> str:
        parts = []
        if self.url:
            parts.append(f"URL:\n{self.url}\n")
        if self.status_code is not None:
            parts.append(f"Status Code:\n{self.status_code}\n")
        if self.headers:
            lines = "".join(f"{k}: {v}\n" for k, v in self.headers.items())
            parts.append(f"Headers:\n{lines}")
        text = self.text
        if text:
            parts.append(f"Payload:\n{text}\n")
        return "\n".join(parts)


def compute_progress(bytes_so_far: int, expected_total: Optional[int]) -> Optional[float]:
    """Fraction of the transfer done, or None when the total is unknown."""
    if expected_total is None or expected_total <= 0:
        return None
    return min(1.0, bytes_so_far / expected_total)


def status_error(code: int) -> HTTPStatusError:
    return HTTPStatusError(code, status_description(code))


class ResponseAccumulator:
    """Builds one Response from transport deliveries."""

    def __init__(self, decoder: Optional[ResponseDecoder] = None):
        self.response = Response()
        self.decoder = decoder
        self.expected_length: Optional[int] = None
        self.bytes_received = 0
        self.finalized = False

    def receive_head(
        self,
        status_code: int,
        headers: Dict[str, str],
        url: Optional[str] = None,
        mime_type: Optional[str] = None,
        suggested_filename: Optional[str] = None,
        expected_length: Optional[int] = None,
    ) -> None:
        resp = self.response
        resp.status_code = status_code
        resp.headers = dict(headers)
        resp.url = url
        resp.mime_type = mime_type
        resp.suggested_filename = suggested_filename
        self.expected_length = expected_length

    def receive_chunk(self, data: bytes, keep: bool = True) -> Optional[float]:
        """Append a body chunk; returns the progress fraction if known."""
        self.bytes_received += len(data)
        if keep:
            self.response.body.extend(data)
        return compute_progress(self.bytes_received, self.expected_length)

    def complete(self, error: Optional[BaseException] = None) -> Response:
        """Finalize the response, classifying transport, decode and status errors."""
        resp = self.response
        self.finalized = True

        if error is not None:
            if isinstance(error, FetchParamsError):
                resp.error = error
            else:
                wrapped = TransportError(str(error) or type(error).__name__, original=error)
                wrapped.__cause__ = error
                resp.error = wrapped
            logger.debug(f"ResponseAccumulator.complete: transport error {resp.error!r}")
            return resp

        if self.decoder is not None and resp.body:
            try:
                resp.decoded_object = self.decoder.decode(bytes(resp.body))
            except DecodeError as e:
                resp.decoded_object = None
                if resp.status_code is None or resp.status_code < 300:
                    resp.error = e
                    logger.debug(f"ResponseAccumulator.complete: decode failed {e}")
                    return resp

        if resp.status_code is not None and resp.status_code >= 300:
            resp.error = status_error(resp.status_code)
        return resp
