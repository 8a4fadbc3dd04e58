"""
Request builder for fetch_params_client.
"""
import logging
import re
from typing import Dict, Optional

import httpx

from ..config import ResolvedConfig
from ..errors import InvalidURLError
from ..types import CachePolicy, HttpMethod, HttpVerb, Params, PreparedRequest, RequestSerializer

logger = logging.getLogger("fetch_params_client.request_builder")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")

CACHE_POLICY_HEADERS: Dict[CachePolicy, Dict[str, str]] = {
    CachePolicy.USE_PROTOCOL_CACHE_POLICY: {},
    CachePolicy.RELOAD_IGNORING_LOCAL_CACHE_DATA: {
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    },
    CachePolicy.RETURN_CACHE_DATA_ELSE_LOAD: {"Cache-Control": "max-stale"},
    CachePolicy.RETURN_CACHE_DATA_DONT_LOAD: {"Cache-Control": "max-stale, only-if-cached"},
}


def has_scheme(url: str) -> bool:
    return bool(_SCHEME_RE.match(url))


def resolve_url(base_url: Optional[str], url: str) -> str:
    """Resolve ``url`` against ``base_url``.

    Absolute URLs are used as-is. Otherwise the base and the path are joined
    with exactly one ``/``.

    Raises:
        InvalidURLError: the result has no scheme or host, or fails to parse.
    """
    if has_scheme(url) or base_url is None:
        resolved = url
    else:
        resolved = f"{base_url.rstrip('/')}/{url.lstrip('/')}"

    try:
        parsed = httpx.URL(resolved)
    except (httpx.InvalidURL, TypeError, ValueError) as e:
        raise InvalidURLError(resolved, str(e)) from e
    if not parsed.scheme or not parsed.host:
        raise InvalidURLError(resolved, "missing scheme or host")
    return resolved


def _method_name(method: HttpMethod) -> str:
    if isinstance(method, HttpVerb):
        return method.value
    return str(method).upper()


def new_request(config: ResolvedConfig, url: str, method: HttpMethod) -> PreparedRequest:
    """PreparedRequest with the client defaults applied."""
    request = PreparedRequest(
        method=_method_name(method),
        url=url,
        headers=httpx.Headers(config.headers),
        timeout=config.timeout,
        cache_policy=config.cache_policy,
        allows_cellular_access=config.allows_cellular_access,
        should_handle_cookies=config.should_handle_cookies,
        should_use_pipelining=config.should_use_pipelining,
    )
    for name, value in CACHE_POLICY_HEADERS[config.cache_policy].items():
        request.headers.setdefault(name, value)
    return request


def build_request(
    config: ResolvedConfig,
    url: str,
    method: HttpMethod = HttpVerb.GET,
    parameters: Optional[Params] = None,
    headers: Optional[Dict[str, str]] = None,
    request_serializer: Optional[RequestSerializer] = None,
) -> PreparedRequest:
    """Build a transport-ready request.

    Order: resolve the URL, apply client defaults, per-call headers and the
    request hook, then serialize the parameters.

    Raises:
        InvalidURLError: the URL cannot be resolved.
        SerializationFailedError: an upload could not be read.
        EncodingFailedError: the JSON body could not be encoded.
    """
    resolved_url = resolve_url(config.base_url, url)
    request = new_request(config, resolved_url, method)

    if headers:
        for name, value in headers.items():
            request.headers[name] = value

    if config.request_hook is not None:
        config.request_hook(request)

    if parameters is not None:
        serializer = request_serializer or config.request_serializer
        logger.debug(
            f"build_request: serializing parameters with {type(serializer).__name__} "
            f"for {request.method} {request.url}"
        )
        serializer.serialize(request, parameters, config.string_encoding)

    logger.debug(f"build_request: built {request.method} {request.url}")
    return request
