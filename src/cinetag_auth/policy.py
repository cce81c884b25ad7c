"""Request authentication steps shared by both admission policies.

Framework-neutral: takes the raw ``Authorization`` header value and returns
the local user, or raises. The FastAPI dependencies translate the outcome
into HTTP responses.
"""

import logging
from typing import Any

from cinetag_auth.directory import UserDirectory
from cinetag_auth.errors import (
    DirectoryFailureError,
    InvalidIdentityError,
    MisconfiguredError,
    TokenVerificationError,
    UnauthenticatedError,
)
from cinetag_auth.identity import identity_from_claims
from cinetag_auth.verifier import JWTVerifier

logger = logging.getLogger("cinetag_auth.policy")

BEARER_PREFIX = "Bearer "


def extract_bearer_token(auth_header: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        UnauthenticatedError: Missing header, other scheme, or empty token.
    """
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise UnauthenticatedError("No bearer token provided")
    token = auth_header[len(BEARER_PREFIX):].strip()
    if not token:
        raise UnauthenticatedError("No bearer token provided")
    return token


async def authenticate(
    verifier: JWTVerifier | None,
    directory: UserDirectory,
    token: str,
) -> Any:
    """Verify ``token`` and ensure a local user for its identity.

    Raises:
        MisconfiguredError: If no verifier could be built.
        UnauthenticatedError: If the token or its identity is rejected.
        DirectoryFailureError: If the directory fails for a valid token.
    """
    if verifier is None:
        raise MisconfiguredError("Token verifier is not configured")

    try:
        claims = await verifier.verify(token)
        identity = identity_from_claims(claims)
    except (TokenVerificationError, InvalidIdentityError) as e:
        logger.debug("Rejected bearer token: %s (%s)", e.code, e.message)
        raise UnauthenticatedError("Invalid bearer token") from e

    try:
        return await directory.ensure_user(identity)
    except Exception as e:
        logger.exception("Failed to ensure user for subject=%s", identity.subject)
        raise DirectoryFailureError("Failed to ensure user") from e


async def authenticate_required(
    verifier: JWTVerifier | None,
    directory: UserDirectory,
    auth_header: str | None,
) -> Any:
    """Mandatory policy: a valid bearer token is required."""
    if verifier is None:
        raise MisconfiguredError("Token verifier is not configured")
    token = extract_bearer_token(auth_header)
    return await authenticate(verifier, directory, token)


async def authenticate_optional(
    verifier: JWTVerifier | None,
    directory: UserDirectory,
    auth_header: str | None,
) -> Any | None:
    """Optional policy: no header means anonymous (``None``).

    A header that is present but wrong is rejected exactly like the
    mandatory policy does.
    """
    if verifier is None:
        raise MisconfiguredError("Token verifier is not configured")
    if auth_header is None or not auth_header.strip():
        return None
    token = extract_bearer_token(auth_header.strip())
    return await authenticate(verifier, directory, token)
