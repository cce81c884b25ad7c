"""cinetag-auth — Clerk JWT verification and request authentication for the cinetag API."""

__version__ = "0.1.0"

from cinetag_auth.config import AuthConfig
from cinetag_auth.directory import InMemoryUserDirectory, LocalUser, UserDirectory
from cinetag_auth.errors import (
    AuthError,
    DirectoryFailureError,
    InvalidIdentityError,
    MisconfiguredError,
    TokenVerificationError,
    UnauthenticatedError,
)
from cinetag_auth.identity import Identity, identity_from_claims, identity_from_webhook
from cinetag_auth.jwks import JWKSKeyStore
from cinetag_auth.service_auth import ServiceAuth
from cinetag_auth.verifier import JWTVerifier

__all__ = [
    "AuthConfig",
    "AuthError",
    "DirectoryFailureError",
    "Identity",
    "InMemoryUserDirectory",
    "InvalidIdentityError",
    "JWKSKeyStore",
    "JWTVerifier",
    "LocalUser",
    "MisconfiguredError",
    "ServiceAuth",
    "TokenVerificationError",
    "UnauthenticatedError",
    "UserDirectory",
    "identity_from_claims",
    "identity_from_webhook",
]
