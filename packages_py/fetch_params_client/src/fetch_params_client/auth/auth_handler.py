"""
Authentication-challenge and server-trust hooks.

Both hooks are plain callables. When unset, the transport passes requests
through untouched: no credentials are offered and any server certificate
accepted by the TLS layer is trusted. The trust validator runs once per new
TLS connection, before any request bytes are written on it.
"""
import base64
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generator, Iterable, Optional

import httpx

logger = logging.getLogger(__name__)
LOG_PREFIX = f"[AUTH:{__file__}]"

MAX_CHALLENGE_ATTEMPTS = 3


def _mask_value(val: Optional[str]) -> str:
    """Mask sensitive value for logging, showing first 10 chars."""
    if not val:
        return "<empty>"
    if len(val) <= 10:
        return "*" * len(val)
    return val[:10] + "*" * (len(val) - 10)


@dataclass
class AuthChallenge:
    """A 401 challenge received for a request."""

    url: str
    host: str
    scheme: str
    realm: Optional[str]
    www_authenticate: str
    previous_failure_count: int = 0

    @classmethod
    def from_response(
        cls,
        request: httpx.Request,
        response: httpx.Response,
        previous_failure_count: int = 0,
    ) -> "AuthChallenge":
        header = response.headers.get("www-authenticate", "")
        scheme, _, params = header.partition(" ")
        realm = None
        for item in params.split(","):
            name, _, value = item.strip().partition("=")
            if name.lower() == "realm":
                realm = value.strip('"')
        return cls(
            url=str(request.url),
            host=request.url.host,
            scheme=scheme.lower(),
            realm=realm,
            www_authenticate=header,
            previous_failure_count=previous_failure_count,
        )


@dataclass
class Credential:
    """Credential answering a challenge: username/password or a bearer token."""

    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None

    def authorization_header(self) -> str:
        if self.token is not None:
            return f"Bearer {self.token}"
        raw = f"{self.username or ''}:{self.password or ''}".encode("utf-8")
        return f"Basic {base64.b64encode(raw).decode('ascii')}"

    def __repr__(self) -> str:
        return (
            f"Credential(username={self.username!r}, "
            f"password={_mask_value(self.password)!r}, "
            f"token={_mask_value(self.token)!r})"
        )


AuthChallengeHandler = Callable[[AuthChallenge], Optional[Credential]]


class ChallengeAuth(httpx.Auth):
    """httpx auth flow that answers 401 challenges through a handler.

    A handler returning None declines the challenge; the 401 response is then
    returned to the caller as-is.
    """

    def __init__(self, handler: AuthChallengeHandler, max_attempts: int = MAX_CHALLENGE_ATTEMPTS):
        self._handler = handler
        self._max_attempts = max_attempts

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        response = yield request
        failures = 0
        while response.status_code == 401 and "www-authenticate" in response.headers:
            if failures >= self._max_attempts:
                logger.warning(f"{LOG_PREFIX} ChallengeAuth: giving up after {failures} attempts")
                return
            challenge = AuthChallenge.from_response(request, response, failures)
            credential = self._handler(challenge)
            if credential is None:
                logger.debug(f"{LOG_PREFIX} ChallengeAuth: handler declined challenge for {challenge.host}")
                return
            header = credential.authorization_header()
            logger.debug(
                f"{LOG_PREFIX} ChallengeAuth: answering {challenge.scheme} challenge "
                f"with Authorization={_mask_value(header)}"
            )
            request.headers["Authorization"] = header
            failures += 1
            response = yield request


@dataclass
class ServerTrust:
    """Server identity presented on a connection."""

    host: str
    certificate: Optional[bytes] = None
    ssl_object: Any = None

    @classmethod
    def from_stream(cls, host: str, network_stream: Any) -> "ServerTrust":
        """Read the peer certificate from a freshly negotiated TLS stream."""
        ssl_object = None
        if network_stream is not None:
            ssl_object = network_stream.get_extra_info("ssl_object")
        certificate = ssl_object.getpeercert(binary_form=True) if ssl_object is not None else None
        return cls(host=host, certificate=certificate, ssl_object=ssl_object)

    @property
    def fingerprint(self) -> Optional[str]:
        """SHA-256 hex digest of the DER certificate."""
        if self.certificate is None:
            return None
        return hashlib.sha256(self.certificate).hexdigest()


TrustValidator = Callable[[ServerTrust, str], bool]


class PinnedCertificateValidator:
    """Accepts only servers whose certificate SHA-256 matches a pin."""

    def __init__(self, pins: Iterable[str]):
        self._pins = {pin.replace(":", "").lower() for pin in pins}

    def __call__(self, trust: ServerTrust, host: str) -> bool:
        fingerprint = trust.fingerprint
        if fingerprint is None:
            logger.warning(f"{LOG_PREFIX} PinnedCertificateValidator: no certificate for {host}")
            return False
        accepted = fingerprint in self._pins
        if not accepted:
            logger.warning(f"{LOG_PREFIX} PinnedCertificateValidator: pin mismatch for {host}")
        return accepted
