"""
Error taxonomy for fetch_params_client.

Build-time errors are raised by the request builder. Exchange errors are
stored on ``Response.error`` and delivered through the completion path.
"""
from typing import Optional


class FetchParamsError(Exception):
    """Base class for every error raised or reported by this package."""


class InvalidURLError(FetchParamsError):
    """The resolved URL string cannot be parsed into a well-formed URL."""

    def __init__(self, url: str, reason: Optional[str] = None):
        self.url = url
        message = f"Invalid url: {url!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class MissingUploadSourceError(FetchParamsError):
    """An Upload has neither inline bytes nor a readable backing file."""

    def __init__(self, path: Optional[str] = None, reason: Optional[str] = None):
        self.path = path
        if path is None:
            message = "Upload has no data and no file path"
        else:
            message = f"Upload source could not be read: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class SerializationFailedError(FetchParamsError):
    """Parameter serialization failed; the cause is chained."""


class EncodingFailedError(FetchParamsError):
    """JSON encoding of the parameter structure failed; the cause is chained."""


class TransportError(FetchParamsError):
    """Connectivity failure, timeout, cancellation or trust rejection.

    The exception raised by the transport library is chained as ``__cause__``
    and kept on ``original``.
    """

    def __init__(self, message: str, original: Optional[BaseException] = None):
        self.original = original
        super().__init__(message)


class RequestCancelledError(TransportError):
    """The in-flight request was cancelled by the caller."""

    def __init__(self, message: str = "Request was cancelled"):
        super().__init__(message)


class TrustRejectedError(TransportError):
    """The trust validator rejected the server for the requested host."""

    def __init__(self, host: str):
        self.host = host
        super().__init__(f"Server trust rejected for host {host!r}")


class HTTPStatusError(FetchParamsError):
    """Status code >= 300 on an otherwise successful exchange."""

    domain = "HTTP"

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}")


class DecodeError(FetchParamsError):
    """The response decoder failed on the body; the cause is chained."""
