"""
Auth and trust hooks for fetch_params_client.
"""
from .auth_handler import (
    AuthChallenge,
    AuthChallengeHandler,
    ChallengeAuth,
    Credential,
    PinnedCertificateValidator,
    ServerTrust,
    TrustValidator,
)

__all__ = [
    "AuthChallenge",
    "AuthChallengeHandler",
    "ChallengeAuth",
    "Credential",
    "PinnedCertificateValidator",
    "ServerTrust",
    "TrustValidator",
]
