"""
Configuration for fetch_params_client.
"""
import codecs
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import urlparse

from .types import CachePolicy, RequestHook, RequestSerializer, ResponseDecoder

logger = logging.getLogger("fetch_params_client.config")

DEFAULT_TIMEOUT = 60.0
DEFAULT_ENCODING = "utf-8"


def _is_ssl_verify_disabled_by_env() -> bool:
    """
    Check if SSL verification is disabled via environment variables.

    Returns True if any of these are set:
    - NODE_TLS_REJECT_UNAUTHORIZED=0
    - SSL_CERT_VERIFY=0
    """
    node_tls = os.environ.get("NODE_TLS_REJECT_UNAUTHORIZED", "")
    ssl_cert_verify = os.environ.get("SSL_CERT_VERIFY", "")
    return node_tls == "0" or ssl_cert_verify == "0"


@dataclass
class ClientConfig:
    """Client configuration.

    Per-client defaults applied to every request before parameter encoding:
    - headers: default headers, overridden by per-call headers
    - timeout: seconds, enforced by the transport
    - cache_policy: mapped onto Cache-Control / Pragma request headers
    - allows_cellular_access / should_use_pipelining: carried on the request
    - should_handle_cookies: False strips the Cookie header before sending
    """

    base_url: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    cache_policy: CachePolicy = CachePolicy.USE_PROTOCOL_CACHE_POLICY
    allows_cellular_access: bool = True
    should_handle_cookies: bool = True
    should_use_pipelining: bool = False
    string_encoding: str = DEFAULT_ENCODING
    request_serializer: Optional[RequestSerializer] = None
    response_decoder: Optional[ResponseDecoder] = None
    request_hook: Optional[RequestHook] = None
    verify_ssl: Optional[bool] = None
    verbose: bool = False


@dataclass
class ResolvedConfig:
    """Resolved client configuration with defaults applied."""

    base_url: Optional[str]
    headers: Dict[str, str]
    timeout: float
    cache_policy: CachePolicy
    allows_cellular_access: bool
    should_handle_cookies: bool
    should_use_pipelining: bool
    string_encoding: str
    request_serializer: RequestSerializer
    response_decoder: Optional[ResponseDecoder]
    request_hook: Optional[RequestHook]
    verify_ssl: bool
    verbose: bool


def validate_config(config: ClientConfig) -> None:
    """Validate client configuration."""
    if config.base_url is not None:
        parsed = urlparse(config.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"Invalid base_url: {config.base_url}")

    if config.timeout is not None and config.timeout <= 0:
        raise ValueError(f"timeout must be positive, got {config.timeout}")

    try:
        codecs.lookup(config.string_encoding)
    except LookupError as e:
        raise ValueError(f"Unknown string_encoding: {config.string_encoding}") from e

    if not isinstance(config.cache_policy, CachePolicy):
        raise ValueError(f"Invalid cache_policy: {config.cache_policy!r}")


def resolve_config(config: ClientConfig) -> ResolvedConfig:
    """Resolve client configuration with defaults."""
    from .core.serializers import default_request_serializer

    validate_config(config)

    verify_ssl = config.verify_ssl
    if verify_ssl is None:
        verify_ssl = not _is_ssl_verify_disabled_by_env()
        if not verify_ssl:
            logger.warning("resolve_config: SSL verification disabled by environment")

    return ResolvedConfig(
        base_url=config.base_url,
        headers=dict(config.headers),
        timeout=config.timeout if config.timeout is not None else DEFAULT_TIMEOUT,
        cache_policy=config.cache_policy,
        allows_cellular_access=config.allows_cellular_access,
        should_handle_cookies=config.should_handle_cookies,
        should_use_pipelining=config.should_use_pipelining,
        string_encoding=config.string_encoding,
        request_serializer=config.request_serializer or default_request_serializer,
        response_decoder=config.response_decoder,
        request_hook=config.request_hook,
        verify_ssl=verify_ssl,
        verbose=config.verbose,
    )
