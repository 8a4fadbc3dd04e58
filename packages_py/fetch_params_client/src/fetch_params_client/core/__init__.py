"""
Core modules for fetch_params_client.
"""
from .base_client import AsyncHTTPClient
from .encoders import (
    append_query_string,
    encode_multipart,
    encode_query_string,
    encode_urlencoded_body,
)
from .flatten import contains_upload, flatten
from .request_builder import build_request, new_request, resolve_url
from .response import Response, ResponseAccumulator, compute_progress
from .serializers import (
    FormRequestSerializer,
    JSONRequestSerializer,
    JSONResponseDecoder,
)

__all__ = [
    "AsyncHTTPClient",
    "append_query_string",
    "encode_multipart",
    "encode_query_string",
    "encode_urlencoded_body",
    "contains_upload",
    "flatten",
    "build_request",
    "new_request",
    "resolve_url",
    "Response",
    "ResponseAccumulator",
    "compute_progress",
    "FormRequestSerializer",
    "JSONRequestSerializer",
    "JSONResponseDecoder",
]
