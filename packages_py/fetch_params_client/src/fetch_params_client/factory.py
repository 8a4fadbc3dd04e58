"""
Factory functions for creating fetch_params_client clients.
"""
from typing import Dict, Optional

import httpx

from .auth.auth_handler import AuthChallengeHandler, TrustValidator
from .config import ClientConfig
from .core.base_client import AsyncHTTPClient
from .core.serializers import JSONRequestSerializer, JSONResponseDecoder
from .types import CachePolicy


def create_client(
    base_url: Optional[str] = None,
    httpx_client: Optional[httpx.AsyncClient] = None,
    timeout: Optional[float] = None,
    default_headers: Optional[Dict[str, str]] = None,
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY,
    json: bool = False,
    auth: Optional[AuthChallengeHandler] = None,
    security: Optional[TrustValidator] = None,
    verify_ssl: Optional[bool] = None,
    verbose: bool = False,
) -> AsyncHTTPClient:
    """
    Create an AsyncHTTPClient with the given configuration.

    Args:
        base_url: Base URL prepended to relative request URLs.
        httpx_client: Pre-configured httpx.AsyncClient. Closed together with
            the returned client.
        timeout: Request timeout in seconds.
        default_headers: Headers applied to every request.
        cache_policy: Cache policy mapped onto request headers.
        json: Send bodies as JSON and decode JSON responses.
        auth: Client-wide authentication challenge handler.
        security: Client-wide server trust validator.
        verify_ssl: Override TLS verification. None reads the environment.
        verbose: Print request/response panels.

    Example:
        client = create_client(
            base_url="https://api.example.com",
            json=True,
        )
        response = await client.post("/items", {"name": "x"})
    """
    config = ClientConfig(
        base_url=base_url,
        headers=default_headers or {},
        timeout=timeout,
        cache_policy=cache_policy,
        request_serializer=JSONRequestSerializer() if json else None,
        response_decoder=JSONResponseDecoder() if json else None,
        verify_ssl=verify_ssl,
        verbose=verbose,
    )
    return AsyncHTTPClient(config, httpx_client=httpx_client, auth=auth, security=security)
