"""
Type definitions for fetch_params_client.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Union,
)

import httpx

if TYPE_CHECKING:
    from .upload import Upload
    from .core.response import Response


# HTTP verbs. Plain strings are accepted too, so the set is extendable.
class HttpVerb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    HEAD = "HEAD"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    CONNECT = "CONNECT"


HttpMethod = Union[HttpVerb, str]

# Verbs that carry their parameters in the URL query component
URI_PARAM_VERBS = frozenset({"GET", "HEAD", "DELETE"})

# Verbs that carry a request body
BODY_VERBS = frozenset({"POST", "PUT", "PATCH"})


class CachePolicy(str, Enum):
    """Request cache policy, mapped onto Cache-Control request headers."""

    USE_PROTOCOL_CACHE_POLICY = "use_protocol_cache_policy"
    RELOAD_IGNORING_LOCAL_CACHE_DATA = "reload_ignoring_local_cache_data"
    RETURN_CACHE_DATA_ELSE_LOAD = "return_cache_data_else_load"
    RETURN_CACHE_DATA_DONT_LOAD = "return_cache_data_dont_load"


# Parameter tree: maps, sequences, uploads and scalars, arbitrarily nested
Params = Union[Mapping[str, Any], Sequence[Any], "Upload", str, int, float, bool, None]


@dataclass
class Pair:
    """A flattened (key, value) unit. Value is a string or an Upload."""

    key: Optional[str]
    value: Union[str, "Upload"]

    @property
    def upload(self) -> Optional["Upload"]:
        from .upload import Upload

        return self.value if isinstance(self.value, Upload) else None

    @property
    def text(self) -> str:
        """String form of the value (uploads use their generic representation)."""
        return self.value if isinstance(self.value, str) else str(self.value)


@dataclass
class PreparedRequest:
    """Transport-ready request: method, resolved URL, headers and body."""

    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Optional[bytes] = None
    timeout: Optional[float] = None
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY
    allows_cellular_access: bool = True
    should_handle_cookies: bool = True
    should_use_pipelining: bool = False

    @property
    def is_uri_param(self) -> bool:
        """True when parameters belong in the URL (GET, HEAD, DELETE)."""
        return self.method.upper() in URI_PARAM_VERBS


class RequestSerializer(Protocol):
    """Applies a parameter structure to a request (URL or body)."""

    def serialize(
        self,
        request: PreparedRequest,
        parameters: Params,
        encoding: str = "utf-8",
    ) -> None:
        ...


class ResponseDecoder(Protocol):
    """Decodes a response body into a native object."""

    def decode(self, data: bytes) -> Any:
        ...


# Callback types
CompletionHandler = Callable[["Response"], None]
ProgressHandler = Callable[[float], None]
DownloadHandler = Callable[[str], None]
RequestHook = Callable[[PreparedRequest], None]
UploadCallback = Callable[[int, int], None]
