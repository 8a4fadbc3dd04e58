"""
Request serializers and response decoders.

A request serializer decides how a parameter structure lands on a request:
  1. GET, HEAD and DELETE always use the query string, uploads included.
  2. Any upload anywhere in the structure selects multipart/form-data and
     forces POST unless the verb already carries a body.
  3. JSONRequestSerializer sends the raw structure as a JSON body.
  4. Otherwise the body is application/x-www-form-urlencoded.
"""
import json
import logging
from typing import Any, Optional

from ..errors import (
    DecodeError,
    EncodingFailedError,
    MissingUploadSourceError,
    SerializationFailedError,
)
from ..types import BODY_VERBS, HttpVerb, Params, PreparedRequest
from .encoders import (
    append_query_string,
    charset_name,
    encode_multipart,
    encode_query_string,
    encode_urlencoded_body,
)
from .flatten import contains_upload, flatten

logger = logging.getLogger("fetch_params_client.serializers")

CONTENT_TYPE = "Content-Type"


def apply_query_string(request: PreparedRequest, parameters: Params, encoding: str = "utf-8") -> None:
    query = encode_query_string(flatten(parameters), encoding)
    request.url = append_query_string(request.url, query)


def apply_urlencoded_body(request: PreparedRequest, parameters: Params, encoding: str = "utf-8") -> None:
    body, content_type = encode_urlencoded_body(flatten(parameters), encoding)
    request.headers.setdefault(CONTENT_TYPE, content_type)
    request.body = body


def apply_multipart_body(request: PreparedRequest, parameters: Params, encoding: str = "utf-8") -> None:
    if request.method.upper() not in BODY_VERBS:
        logger.debug(f"apply_multipart_body: forcing POST (was {request.method})")
        request.method = HttpVerb.POST.value
    try:
        body, content_type = encode_multipart(flatten(parameters), encoding)
    except (MissingUploadSourceError, UnicodeEncodeError) as e:
        raise SerializationFailedError(f"Multipart encoding failed: {e}") from e
    request.headers.setdefault(CONTENT_TYPE, content_type)
    request.body = body


class FormRequestSerializer:
    """Standard HTTP parameter encoding: query string, form body or multipart."""

    def serialize(self, request: PreparedRequest, parameters: Params, encoding: str = "utf-8") -> None:
        if request.is_uri_param:
            apply_query_string(request, parameters, encoding)
        elif contains_upload(parameters):
            apply_multipart_body(request, parameters, encoding)
        else:
            apply_urlencoded_body(request, parameters, encoding)


class JSONRequestSerializer(FormRequestSerializer):
    """Sends the raw parameter structure as a JSON body."""

    def __init__(self, **dumps_kwargs: Any):
        self._dumps_kwargs = dumps_kwargs

    def serialize(self, request: PreparedRequest, parameters: Params, encoding: str = "utf-8") -> None:
        if request.is_uri_param or contains_upload(parameters):
            super().serialize(request, parameters, encoding)
            return
        try:
            text = json.dumps(parameters, **self._dumps_kwargs)
        except (TypeError, ValueError) as e:
            raise EncodingFailedError(f"JSON encoding failed: {e}") from e
        try:
            request.body = text.encode(encoding)
        except UnicodeEncodeError as e:
            raise EncodingFailedError(f"JSON encoding failed: {e}") from e
        request.headers[CONTENT_TYPE] = f"application/json; charset={charset_name(encoding)}"


class JSONResponseDecoder:
    """Decodes a response body as JSON."""

    def __init__(self, encoding: Optional[str] = None):
        self._encoding = encoding

    def decode(self, data: bytes) -> Any:
        try:
            text = data.decode(self._encoding) if self._encoding else data
            return json.loads(text)
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeError(f"Response body is not valid JSON: {e}") from e


default_request_serializer = FormRequestSerializer()
