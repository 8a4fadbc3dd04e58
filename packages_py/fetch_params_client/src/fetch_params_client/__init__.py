"""
Convenience HTTP client for Python.

Turns nested parameter structures into query strings, urlencoded bodies or
multipart/form-data uploads, and runs requests as cancellable tasks with
progress, download, auth-challenge and server-trust hooks.
"""
from .types import (
    BODY_VERBS,
    URI_PARAM_VERBS,
    CachePolicy,
    HttpMethod,
    HttpVerb,
    Pair,
    Params,
    PreparedRequest,
    RequestSerializer,
    ResponseDecoder,
)
from .errors import (
    DecodeError,
    EncodingFailedError,
    FetchParamsError,
    HTTPStatusError,
    InvalidURLError,
    MissingUploadSourceError,
    RequestCancelledError,
    SerializationFailedError,
    TransportError,
    TrustRejectedError,
)
from .status_codes import status_description
from .upload import Upload
from .config import ClientConfig, ResolvedConfig, resolve_config, validate_config
from .core.flatten import contains_upload, flatten
from .core.encoders import (
    append_query_string,
    encode_multipart,
    encode_query_string,
    encode_urlencoded_body,
)
from .core.serializers import (
    FormRequestSerializer,
    JSONRequestSerializer,
    JSONResponseDecoder,
)
from .core.request_builder import build_request
from .core.response import Response, ResponseAccumulator, compute_progress
from .core.base_client import AsyncHTTPClient
from .auth.auth_handler import (
    AuthChallenge,
    AuthChallengeHandler,
    Credential,
    PinnedCertificateValidator,
    ServerTrust,
    TrustValidator,
)
from .transport import (
    BodySent,
    ChunkReceived,
    Completed,
    HeadReceived,
    HTTPTask,
    HttpxTransport,
    ResponseHead,
    TaskState,
    TransportCoordinator,
)
from .factory import create_client

__version__ = "0.1.0"

__all__ = [
    # Types
    "BODY_VERBS",
    "URI_PARAM_VERBS",
    "CachePolicy",
    "HttpMethod",
    "HttpVerb",
    "Pair",
    "Params",
    "PreparedRequest",
    "RequestSerializer",
    "ResponseDecoder",
    # Errors
    "DecodeError",
    "EncodingFailedError",
    "FetchParamsError",
    "HTTPStatusError",
    "InvalidURLError",
    "MissingUploadSourceError",
    "RequestCancelledError",
    "SerializationFailedError",
    "TransportError",
    "TrustRejectedError",
    "status_description",
    # Uploads
    "Upload",
    # Config
    "ClientConfig",
    "ResolvedConfig",
    "resolve_config",
    "validate_config",
    # Encoding
    "contains_upload",
    "flatten",
    "append_query_string",
    "encode_multipart",
    "encode_query_string",
    "encode_urlencoded_body",
    "FormRequestSerializer",
    "JSONRequestSerializer",
    "JSONResponseDecoder",
    "build_request",
    # Responses
    "Response",
    "ResponseAccumulator",
    "compute_progress",
    # Client
    "AsyncHTTPClient",
    "create_client",
    # Auth
    "AuthChallenge",
    "AuthChallengeHandler",
    "Credential",
    "PinnedCertificateValidator",
    "ServerTrust",
    "TrustValidator",
    # Tasks
    "BodySent",
    "ChunkReceived",
    "Completed",
    "HeadReceived",
    "HTTPTask",
    "HttpxTransport",
    "ResponseHead",
    "TaskState",
    "TransportCoordinator",
]
